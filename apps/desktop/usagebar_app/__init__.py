"""UsageBar desktop status strip and command line tools."""
