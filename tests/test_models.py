import threading

import pytest

from deepseek_mcp.models import (
    InvalidModelError,
    ModelCatalog,
    ModelInfo,
    fallback_models,
)


def test_fallback_model_ids():
    assert [model.id for model in fallback_models()] == [
        "deepseek-chat",
        "deepseek-coder",
        "deepseek-reasoner",
    ]


def test_fallback_names():
    names = {model.id: model.name for model in fallback_models()}
    assert names["deepseek-reasoner"] == "DeepSeek Reasoner"


def test_empty_catalog_uses_fallback():
    assert ModelCatalog().available() == fallback_models()


def test_replace_overrides_fallback():
    catalog = ModelCatalog()
    discovered = [ModelInfo("custom-model", "Custom Model", "Model provided by someone")]
    catalog.replace(discovered)
    assert catalog.available() == discovered
    assert catalog.get_model_by_id("deepseek-chat") is None


def test_replace_with_empty_restores_fallback():
    catalog = ModelCatalog([ModelInfo("x", "X", "d")])
    catalog.replace([])
    assert catalog.available() == fallback_models()


def test_available_returns_copy():
    catalog = ModelCatalog([ModelInfo("x", "X", "d")])
    catalog.available().clear()
    assert [model.id for model in catalog.available()] == ["x"]


def test_get_model_by_id():
    catalog = ModelCatalog()
    model = catalog.get_model_by_id("deepseek-coder")
    assert model is not None and model.name == "DeepSeek Coder"
    assert catalog.get_model_by_id("gpt-unknown") is None


def test_validate_known_model_passes_and_unknown_raises():
    catalog = ModelCatalog()
    catalog.validate_model_id("deepseek-chat")
    with pytest.raises(InvalidModelError) as info:
        catalog.validate_model_id("bogus")
    message = str(info.value)
    assert message.startswith("Invalid model ID: bogus. Available models are:")
    assert "\n- deepseek-chat: DeepSeek Chat" in message
    assert message.count("\n- ") == len(fallback_models())


def test_concurrent_replace_is_consistent():
    catalog = ModelCatalog()
    lists = [[ModelInfo(f"m{i}-{j}", "N", "D") for j in range(5)] for i in range(10)]

    def worker(models):
        catalog.replace(models)
        assert len(catalog.available()) == 5

    threads = [threading.Thread(target=worker, args=(models,)) for models in lists]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert catalog.available() in lists