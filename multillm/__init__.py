"""
Send one prompt to many io.net models in parallel and compare the answers.

    from multillm import multi_llm

    result = multi_llm("Explain CRDTs in two sentences", models=[
        "meta-llama/Llama-3.3-70B-Instruct",
        "Qwen/Qwen3-235B-A22B-FP8",
    ])
    for model, text in result.responses.items():
        print(model, text)
"""

from .client import MultiLLMClient, list_models, multi_llm, multi_llm_random
from .config import DispatchConfig, MultiLLMConfig, build_dispatch_config, load_config
from .dispatch import DispatchSummary, FanOutDispatcher, summarize
from .errors import (
    ConfigurationError,
    EmptyResponseError,
    GatewayHTTPError,
    MalformedResponseError,
    MultiLLMError,
    NoValidModelsError,
)
from .invoker import ModelInvoker
from .models import InvocationRequest, InvocationResult, ModelInfo, MultiLLMResult, Usage

__version__ = "0.1.0"

__all__ = [
    'MultiLLMClient',
    'multi_llm',
    'multi_llm_random',
    'list_models',
    'DispatchConfig',
    'MultiLLMConfig',
    'build_dispatch_config',
    'load_config',
    'DispatchSummary',
    'FanOutDispatcher',
    'summarize',
    'ModelInvoker',
    'InvocationRequest',
    'InvocationResult',
    'ModelInfo',
    'MultiLLMResult',
    'Usage',
    'MultiLLMError',
    'ConfigurationError',
    'NoValidModelsError',
    'GatewayHTTPError',
    'MalformedResponseError',
    'EmptyResponseError',
]
