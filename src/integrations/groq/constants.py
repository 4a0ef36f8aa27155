# groq_integration/constants.py

MODEL_CONFIGURATIONS = {
    'simple': {
        'primary': {
            'name': 'llama-3.3-70b-versatile',
            'default_temperature': 0.1,
            'max_tokens': 1024,
            'recommended_tasks': ['priority_classification']
        },
        'fallback': {
            'name': 'llama-3.1-8b-instant',
            'default_temperature': 0.1,
            'max_tokens': 1024,
            'recommended_tasks': ['priority_classification']
        }
    }
}

# Default settings for different task types
TASK_SETTINGS = {
    'priority_classification': {
        'complexity': 'simple',
        'temperature': 0.1
    }
}
