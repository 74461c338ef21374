"""Docker Container Updater (DCU).

Single-run updater that keeps a declared set of containers on their newest image:
 - inspects each container (exists? running?)
 - pulls the configured image and detects whether it changed
 - recreates the container from a declarative argument map
 - restarts it only when it was running before (or is configured to always run)
 - mails a report of the run

The implementation is intentionally small so it can be audited and explained.
"""
