"""Core domain package for leadinbox.

Core contains normalization, extraction, scoring, and deduplication logic
without any IMAP, SMTP, or file-specific code, keeping the business logic
portable.
"""
