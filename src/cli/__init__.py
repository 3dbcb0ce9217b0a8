"""Command-line interface: reconcile run | classify | fix-time | health."""
