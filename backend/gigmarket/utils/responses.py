from typing import Any, Optional


def api_response(data: Any = None, message: str = "", status_code: int = 200) -> dict:
    """Standard response envelope shared by success and error responses"""
    return {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": status_code < 400
    }


def error_response(status_code: int, message: str, stack: Optional[str] = None, data: Any = None) -> dict:
    body = api_response(data=data, message=message, status_code=status_code)
    if stack is not None:
        body["stack"] = stack
    return body
