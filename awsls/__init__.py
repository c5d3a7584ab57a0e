"""awsls — list AWS resources across accounts and regions as CSV."""

__version__ = "0.1.0"
