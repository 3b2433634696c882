# chainrun_tasks.py
# Tasks for a cargo workspace whose subcrates are linted standalone.
from __future__ import annotations

from chainrun.workspace import workspace_tasks


def tasks():
    return workspace_tasks()
