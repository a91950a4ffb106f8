"""Release bounded context.

- domain: versions, commits, notes and the shared release context
- resolve: next version and target (extension/package/repository) resolution
- flow: workflow engine, confirmation gate, conflict resolution, pipelines
- view: rendering of run outcomes
- infra: GitHub, npm and TAO adapters
"""

from __future__ import annotations
