from typing import Dict, Optional
from .constants import MODEL_CONFIGURATIONS, TASK_SETTINGS


class ModelManager:
    def __init__(self, error_threshold: int = 5):
        """
        Track model health and pick the model configuration for a task.

        Args:
            error_threshold: Consecutive failures after which the fallback
                model is used for a task
        """
        self.error_threshold = error_threshold
        self.consecutive_errors: Dict[str, int] = {}

    def get_model_config(self, task_type: str, force_model: Optional[str] = None) -> Dict:
        """
        Get the appropriate model configuration for a task.

        Args:
            task_type: Type of task (e.g., 'priority_classification')
            force_model: Optional specific model to use

        Returns:
            Dict containing model configuration
        """
        if force_model:
            for complexity in MODEL_CONFIGURATIONS.values():
                for model_type in complexity.values():
                    if model_type['name'] == force_model:
                        return model_type
            raise ValueError(f"Forced model {force_model} not found in configurations")

        task_settings = TASK_SETTINGS.get(task_type)
        if not task_settings:
            raise ValueError(f"Unknown task type: {task_type}")

        models = MODEL_CONFIGURATIONS[task_settings['complexity']]
        if self._should_use_fallback(task_type):
            return models['fallback']
        return models['primary']

    def _should_use_fallback(self, task_type: str) -> bool:
        return self.consecutive_errors.get(task_type, 0) >= self.error_threshold

    def record_result(self, task_type: str, success: bool):
        """Record the outcome of a request for a task."""
        if success:
            self.consecutive_errors[task_type] = 0
        else:
            self.consecutive_errors[task_type] = self.consecutive_errors.get(task_type, 0) + 1
