"""
Scroll Capture Core Package

Session state machine, live poller, capture gate/backends and the
controller that ties them together. Import from the submodules directly.
"""
