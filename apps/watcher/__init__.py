"""
Watcher App - Top Stories Snapshot Poller

Responsibilities:
- Poll the Hacker News ranked-list endpoint on a fixed interval
- Enrich the first page of ranked IDs with per-item score and comment count
- Append one timestamped snapshot per cycle to a daily line-delimited file
- Stop cleanly on SIGINT/SIGTERM

Outputs:
- {OUTPUT_DIR}/{OUTPUT_PREFIX}-YYYY-MM-DD.jl, one JSON object per line:
  {"t": "<ISO-8601 UTC>", "items": [{"id": <int>, "s": <int>, "c": <int>}, ...]}
"""
