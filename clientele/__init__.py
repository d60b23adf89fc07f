"""Clientele: allocation matching and follow-up scheduling for a watch clienteling CRM."""

__version__ = "0.1.0"
