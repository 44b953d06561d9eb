"""Slack API access for the digest bot."""
