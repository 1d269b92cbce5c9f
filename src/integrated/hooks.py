"""
Setup and teardown hooks.

Methods are tagged with the @setup / @teardown decorators when the class
body runs. Lookups walk the class hierarchy once per class and cache the
result, so a test suite pays for discovery only once per test class.

Example:
    class SignupTest(AppTest):
        @setup
        def seed_users(self):
            self.db.execute("INSERT INTO users (name) VALUES ('bob')")

        @teardown
        def drop_users(self):
            self.db.execute("DELETE FROM users")
"""

from typing import Dict, List, Tuple

import structlog

logger = structlog.get_logger(__name__)

SETUP = "setup"
TEARDOWN = "teardown"

HOOK_ATTRIBUTE = "__integrated_hooks__"

_cache: Dict[Tuple[type, str], Tuple[str, ...]] = {}


def _tag(tag: str):
    def decorator(func):
        tags = set(getattr(func, HOOK_ATTRIBUTE, ()))
        tags.add(tag)
        setattr(func, HOOK_ATTRIBUTE, frozenset(tags))
        return func

    return decorator


def setup(func):
    """Run this method before each test."""
    return _tag(SETUP)(func)


def teardown(func):
    """Run this method after each test, even when the test failed."""
    return _tag(TEARDOWN)(func)


def _is_tagged(value, tag: str) -> bool:
    if isinstance(value, (staticmethod, classmethod)):
        value = value.__func__
    return tag in getattr(value, HOOK_ATTRIBUTE, ())


def hooks_for(cls: type, tag: str) -> Tuple[str, ...]:
    """
    Names of the methods of cls tagged with tag, in declaration order.

    Base classes come first. An overriding method keeps the position of the
    method it overrides, and only the most-derived definition decides
    whether the name is still a hook.
    """
    key = (cls, tag)
    if key in _cache:
        return _cache[key]

    order: List[str] = []
    seen = set()
    for klass in reversed(cls.__mro__):
        for name in vars(klass):
            if name not in seen:
                seen.add(name)
                order.append(name)

    names = []
    for name in order:
        for klass in cls.__mro__:
            if name in vars(klass):
                if _is_tagged(vars(klass)[name], tag):
                    names.append(name)
                break

    result = tuple(names)
    _cache[key] = result
    return result


def run_hooks(target, tag: str) -> None:
    """Call every hook of target tagged with tag, in order."""
    names = hooks_for(type(target), tag)
    for name in names:
        getattr(target, name)()
    if names:
        logger.debug("hooks_run", tag=tag, target=type(target).__name__, hooks=list(names))
