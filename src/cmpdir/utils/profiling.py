"""Opt-in cProfile capture for the command line and the checksum workers.

Set CMPDIR_PROFILE to a directory to enable it. Each run gets its own session
subdirectory named {timestamp_ms}_{main_pid}; every profiled call in the main process
or a pool worker dumps one .prof file there.
"""
import cProfile
import functools
import itertools
import os
import time
from pathlib import Path
from typing import Callable, ParamSpec, TypeVar

P = ParamSpec('P')
T = TypeVar('T')

PROFILE_ENV = 'CMPDIR_PROFILE'
# Propagates the session directory name from the main process to pool workers
SESSION_ENV = '_CMPDIR_PROFILE_SESSION_DIR'

_profile_counter = itertools.count()


def get_profile_dir() -> Path | None:
    """Directory receiving this session's profiles, or None when profiling is off."""
    profile_path = os.environ.get(PROFILE_ENV)
    if not profile_path:
        return None
    return Path(profile_path) / session_dir_name()


def session_dir_name() -> str:
    session_dir = os.environ.get(SESSION_ENV)
    if session_dir:
        return session_dir
    return f"{int(time.time() * 1000)}_{os.getpid()}"


def generate_profile_filename(prefix: str = "profile") -> str:
    """Unique file name within a session: {prefix}_{pid}_{sequence}.prof"""
    return f"{prefix}_{os.getpid()}_{next(_profile_counter)}.prof"


def profile_function(func: Callable[P, T], prefix: str = "profile") -> Callable[P, T]:
    """Wrap func so that each call is profiled while CMPDIR_PROFILE is set."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        profile_dir = get_profile_dir()
        if profile_dir is None:
            return func(*args, **kwargs)

        profile_dir.mkdir(parents=True, exist_ok=True)
        profiler = cProfile.Profile()
        try:
            profiler.enable()
            return func(*args, **kwargs)
        finally:
            profiler.disable()
            profiler.dump_stats(str(profile_dir / generate_profile_filename(prefix)))

    return wrapper


def profile_main(func: Callable[P, T]) -> Callable[P, T]:
    """Profile the command line entry point and pin the session directory for workers."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        if os.environ.get(PROFILE_ENV):
            os.environ[SESSION_ENV] = session_dir_name()
        return profile_function(func, prefix="main")(*args, **kwargs)

    return wrapper


def profile_worker(func: Callable[P, T]) -> Callable[P, T]:
    return profile_function(func, prefix="worker")
