"""모델 저장 생명주기 이벤트(saving/updating/...) 핸들러 등록과 발행을 담당합니다."""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

EVENTS = ("saving", "saved", "creating", "created", "updating", "updated")

Handler = Callable[[object], Optional[bool]]

_listeners: Dict[Tuple[type, str], List[Handler]] = defaultdict(list)


def _check_event(event: str) -> None:
    if event not in EVENTS:
        raise ValueError(f"unknown lifecycle event: {event}")


def listen(model: type, event: str, handler: Handler) -> Handler:
    """Register ``handler`` for ``event`` on ``model`` and its subclasses.

    A handler returning ``False`` cancels the operation for cancellable
    events.
    """
    _check_event(event)
    _listeners[(model, event)].append(handler)
    return handler


def remove(model: type, event: str, handler: Handler) -> None:
    _check_event(event)
    handlers = _listeners.get((model, event), [])
    if handler in handlers:
        handlers.remove(handler)


def clear(model: Optional[type] = None) -> None:
    if model is None:
        _listeners.clear()
        return
    for key in [key for key in _listeners if key[0] is model]:
        del _listeners[key]


def fire(event: str, entity, halt: bool = True) -> bool:
    _check_event(event)
    for cls in type(entity).__mro__:
        for handler in list(_listeners.get((cls, event), ())):
            if handler(entity) is False and halt:
                logger.info("[versioning] %s cancelled for %s by %s", event, type(entity).__name__, handler)
                return False
    return True
