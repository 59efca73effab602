"""
Adapters — thin wrappers over external command-line tools.

Every adapter goes through ``termsetup.adapters.shell.command.run_command``,
so tests can swap a single runner for a fake.
"""
