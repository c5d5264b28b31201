from fastapi import HTTPException


class InvalidInputError(HTTPException):
    """Raised when a request carries nothing usable to generate a path from"""
    def __init__(self, message: str = "Keywords required"):
        super().__init__(status_code=400, detail=message)


class YouTubeNotConnectedError(HTTPException):
    """Raised when neither a user token nor a server API key is available"""
    def __init__(self, message: str = "YouTube not connected"):
        super().__init__(status_code=401, detail=message)
