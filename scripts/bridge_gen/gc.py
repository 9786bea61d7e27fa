"""
Garbage collection of unneeded Apis

Keeps every Api reachable from the allow-list by following `deps`
edges, and drops the rest.
"""

import logging
from collections import defaultdict
from typing import Iterable

from .api import Api
from .types import TypeName

logger = logging.getLogger(__name__)


def filter_apis_by_following_edges_from_allowlist(
        apis: list[Api], allowlist: Iterable[TypeName]) -> list[Api]:
    """Return the Apis reachable from `allowlist`, in their original order

    Seeds are matched on `typename_for_allowlist()`, edges on
    `typename()`. Names that match nothing are ignored. The result is
    a pure set closure, so it does not depend on the order of `apis`.
    """
    allowlist = set(allowlist)
    by_typename: dict[TypeName, list[int]] = defaultdict(list)
    for idx, api in enumerate(apis):
        by_typename[api.typename()].append(idx)

    todos = [idx for idx, api in enumerate(apis)
             if api.typename_for_allowlist() in allowlist]
    retained = set(todos)
    while todos:
        idx = todos.pop()
        for dep in apis[idx].deps:
            for dep_idx in by_typename.get(dep, ()):
                if dep_idx not in retained:
                    retained.add(dep_idx)
                    todos.append(dep_idx)

    logger.debug('retained %d of %d apis', len(retained), len(apis))
    return [api for idx, api in enumerate(apis) if idx in retained]
