"""TokenMeter - Claude usage estimation from remote usage reports and local session logs."""

__version__ = "0.1.0"
