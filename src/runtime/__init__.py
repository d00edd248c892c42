# path: src/runtime/__init__.py

"""
Runtime wiring for the world agent.

Holds the process entrypoints and the glue around the behavior core:
- logging configuration
- per-connection BehaviorSession and the reconnection loop
- the supervisor serving the HTTP status surface

Usage:
    python -m runtime.agent_runtime_main
    python -m runtime.supervisor
"""
