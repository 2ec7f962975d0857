"""
Definitions shared by the RoomChat client components.
"""
