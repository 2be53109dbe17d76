from typing import Any, Optional


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    return {"data": data, "message": message}
