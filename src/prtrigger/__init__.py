"""Pull-request webhook build trigger.

Matches source-hosting webhook events (PR comments, labels, reviews and
metadata edits) against the jobs that track a pull request and decides
which of them should build.
"""

__version__ = "0.1.0"
