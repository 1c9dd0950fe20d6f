"""safeTicket sync: migration and read checks for the ticket-exchange tables."""

__version__ = "0.1.0"
