# config/triage_config.py

TRIAGE_CONFIG = {
    "delay": {
        # Deferral applied by "delay until free" for each work status
        "working_minutes": 15,
        "in_meeting_fallback_minutes": 30,
        "resting_minutes": 5,
        # Wall-clock hours in the user's timezone
        "batch_hour": 18,   # end-of-day summary
        "resume_hour": 9    # next-day fallback when no free time is known
    },
    "context": {
        "upcoming_window_minutes": 60,
        # Events starting sooner than this do not count as free time
        "min_lead_minutes": 5,
        "work_keywords": [
            "會議", "meeting", "工作", "work", "專案", "project",
            "客戶", "client", "討論", "review"
        ]
    },
    "classifier": {
        "model": {
            "name": "llama-3.3-70b-versatile",
            "temperature": 0.1,
            "max_tokens": 1024,
            "retry_count": 3
        },
        "fallback": {
            "confidence": 0.5,
            "reasoning": "Unable to parse AI response"
        }
    }
}
