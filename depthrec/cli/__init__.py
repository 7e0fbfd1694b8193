# depthrec/cli/__init__.py
"""Command-line programs: ``depthrec-record``, ``depthrec-playback``, ``depthrec-convert``."""
