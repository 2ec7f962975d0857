"""
Chat module for client-side messaging functionality.

Handles:
- Requests to the chat server and their acknowledgments
- Session state (username, current room)
- Message formatting for display
"""
