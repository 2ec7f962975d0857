"""
Client package for the RoomChat system.

This package contains all client-side functionality including:
- Chat requests and server pushes
- Message formatting
- User interface
- Configuration and utilities
"""
