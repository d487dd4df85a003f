"""storybridge – crosspost newly published Instagram stories to Telegram.

Polls the operator's own story reel at a fixed interval, classifies each
story as new or already known, and forwards new stories to a Telegram
chat.  Stories that exist when the process starts are treated as backlog
and never forwarded.  A failed delivery rolls the story back to
"unknown" so the next poll that still sees it retries the delivery.

Dedup memory lives for the process lifetime only; a restart begins with
an empty known-set and suppresses backlog again.
"""
