"""Adapters that connect the core pipeline to IMAP, SMTP, Telegram, and files."""
