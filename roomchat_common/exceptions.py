class RoomChatError(Exception):
    pass

class NotConnectedError(RoomChatError):
    pass

class ConnectionFailedError(RoomChatError):
    pass
