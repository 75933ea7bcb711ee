"""Example suite wiring: load the harness plugin."""

pytest_plugins = ['bdd_harness.plugin']
