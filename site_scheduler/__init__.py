"""Site scheduler: keeps each monitored site's recurring-job schedule in sync with the site."""

__version__ = "0.1.0"
