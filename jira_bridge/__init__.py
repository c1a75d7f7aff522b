"""Session layer letting a CI server talk to JIRA over SOAP or REST."""

__version__ = "0.1.0"
