from typing import Dict, List, Optional


class MultiLLMError(Exception):
    pass


class ConfigurationError(MultiLLMError, ValueError):
    """Raised before any network call when the API key, prompt or a parameter is unusable."""
    pass


class NoValidModelsError(MultiLLMError):
    def __init__(
        self,
        message: str,
        invalid_models: Optional[List[str]] = None,
        suggestions: Optional[Dict[str, List[str]]] = None,
        available_by_family: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(message)
        self.invalid_models = invalid_models or []
        self.suggestions = suggestions or {}
        self.available_by_family = available_by_family or {}

    def describe(self) -> str:
        lines = [str(self)]
        for model in self.invalid_models:
            hint = self.suggestions.get(model)
            if hint:
                lines.append(f"  - {model} (did you mean: {', '.join(hint)}?)")
            else:
                lines.append(f"  - {model}")
        return "\n".join(lines)


class GatewayHTTPError(MultiLLMError):
    def __init__(
        self,
        message: str,
        status_code: int,
        category: str,
        detail: str = "",
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.category = category
        self.detail = detail
        self.retryable = retryable


class MalformedResponseError(MultiLLMError):
    pass


class EmptyResponseError(MalformedResponseError):
    pass
