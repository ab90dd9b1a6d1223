"""
Core business logic package for Holdfast.

Contains the headless EnforcementEngine, the PIN authorization gate, the
shared enforcement state and the background scheduler. Zero UI
dependencies.

Import the engine from core.engine directly; importing it here would
create an import cycle with the rules package.
"""
