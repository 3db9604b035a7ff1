"""Microsoft Graph API access."""
