"""Domain services for accounts, email delivery and listing matching."""
