"""
PDF Upload Service - renders inbound HTML to PDF and files it in cloud storage.

Each request renders the HTML on a remote Browserless Chromium session,
uploads the resulting PDF to a Microsoft Graph drive folder using a
resumable upload session, and answers with the base64 PDF plus the
uploaded file's URL.
"""

__version__ = "0.1.0"
