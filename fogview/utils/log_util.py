import functools
import logging
import time
from typing import Any, Callable

import numpy as np

logger = logging.getLogger('fogview')

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def describe(value: Any, maxlen: int = 120) -> str:
    """
    ログ用の短い表現。配列は shape / dtype のみ。
    """
    if isinstance(value, np.ndarray) and value.size > 4:
        return f"<ndarray shape={value.shape} dtype={value.dtype}>"
    try:
        text = repr(value)
    except Exception:
        text = '<repr error>'
    return text if len(text) <= maxlen else text[:maxlen] + '...'


def log_io(level: int = logging.DEBUG, mask: tuple[str, ...] = ()):
    """
    関数の入出力と所要時間を自動ログ。mask に指定した引数名は値をマスクする。
    :param level: log level of the call / return records
    :param mask: argument names whose values are replaced by ***
    :return: decorator
    """
    def deco(func: Callable):
        qualname = f"{func.__module__}.{func.__qualname__}"
        positional = func.__code__.co_varnames[:func.__code__.co_argcount]

        def fmt_args(args, kwargs) -> str:
            pairs = list(zip(positional, args)) + list(kwargs.items())
            return ", ".join(
                f"{name}={'***' if name in mask else describe(v)}"
                for name, v in pairs if name not in ("self", "cls")
            )

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            traced = logger.isEnabledFor(level)
            if traced:
                logger.log(level, "-> %s(%s)", qualname, fmt_args(args, kwargs))

            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.exception("Exception in %s", qualname)
                raise
            if traced:
                elapsed_ms = (time.perf_counter() - started) * 1000.0
                logger.log(level, "<- %s [%0.1f ms] = %s", qualname, elapsed_ms, describe(result))
            return result
        return wrapper
    return deco


def level_from_name(value: Any, default: int = logging.INFO) -> int:
    """
    引数の値を logging レベルに正規化して返す
    無効値や未知の値は default へフォールバックする。
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return getattr(logging, text.upper()) if text.upper() in _VALID_LEVELS else default
