"""Services for contest scoring, interview verdicts and contest QA."""
