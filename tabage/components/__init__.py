"""Components layer - domain logic modules.

Components are leaf modules that:
- Do NOT import services, workflows, or interfaces
- ARE imported and used BY workflows and services
- Work on snapshots handed to them; only the reconciler talks to the host
"""
