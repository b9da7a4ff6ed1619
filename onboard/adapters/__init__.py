"""
Adapters — the edges where the orchestrator touches the machine.

Commands, environment, network probes and operator prompts live here so
the engine and installers can be driven by test doubles.
"""
