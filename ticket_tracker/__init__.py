"""
Ticket Tracker client.

This package provides the client-side layer of the ticket tracking system:
contributor reconciliation against the contributor directory, ticket list
operations, form validation and thin clients over the backend REST API.
"""

__version__ = "1.0.0"
__author__ = "Ticket Tracker Team"
