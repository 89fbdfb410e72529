"""
tasktracker - WhatsApp task command bridge to Airtable
"""

__version__ = "0.1.0"
