"""
Test suite for the Slack Session Client.
"""
