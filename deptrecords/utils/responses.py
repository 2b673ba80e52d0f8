from typing import Any, Dict


def ok(**payload: Any) -> Dict[str, Any]:
    """Успешный ответ: {"success": true, ...payload}"""
    return {"success": True, **payload}


def fail(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}
