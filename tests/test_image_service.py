from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from openai import OpenAIError

from fakes import png_image
from models.design_errors import ServiceError
from models.generation_models import IMAGE_AND_TEXT, IMAGE_ONLY, ImageRef, TextRef
from services.openai.image_schema import size_for_aspect_ratio
from services.openai.image_service import ImageGenerationService
from services.openai.response_parser import extract_block_reason, parse_compose_response


def _client(images_response=None, responses_response=None, error=None):
	generate = AsyncMock(return_value=images_response, side_effect=error)
	create = AsyncMock(return_value=responses_response, side_effect=error)
	return SimpleNamespace(
		images=SimpleNamespace(generate=generate),
		responses=SimpleNamespace(create=create),
	)


def _responses_payload(*items, incomplete_reason=None):
	details = SimpleNamespace(reason=incomplete_reason) if incomplete_reason else None
	return SimpleNamespace(output=list(items), incomplete_details=details)


@pytest.mark.asyncio
async def test_synthesize_maps_aspect_ratio_to_size():
	client = _client(images_response=SimpleNamespace(data=[SimpleNamespace(b64_json="aW1n")]))
	service = ImageGenerationService(client, image_model="img-model")

	image = await service.synthesize("a scene", "16:9")

	assert image.data == "aW1n"
	assert image.mime_type == "image/png"
	kwargs = client.images.generate.await_args.kwargs
	assert kwargs["size"] == "1536x1024"
	assert kwargs["model"] == "img-model"
	assert kwargs["prompt"] == "a scene"


@pytest.mark.asyncio
async def test_synthesize_without_data_is_service_error():
	client = _client(images_response=SimpleNamespace(data=[]))
	with pytest.raises(ServiceError) as excinfo:
		await ImageGenerationService(client).synthesize("x", "1:1")
	assert "did not return image data" in str(excinfo.value)


@pytest.mark.asyncio
async def test_openai_errors_are_wrapped():
	client = _client(error=OpenAIError("rate limited"))
	service = ImageGenerationService(client)
	with pytest.raises(ServiceError) as excinfo:
		await service.synthesize("x", "1:1")
	assert str(excinfo.value) == "OpenAI API Error: rate limited"

	with pytest.raises(ServiceError):
		await service.compose([TextRef("x")], IMAGE_ONLY)


@pytest.mark.asyncio
async def test_compose_builds_ordered_content_and_parses_output():
	scene = png_image()
	payload = _responses_payload(
		SimpleNamespace(type="image_generation_call", result="Y29tcG9zaXRl"),
		SimpleNamespace(type="message", content=[SimpleNamespace(type="output_text", text="Placed it.")]),
	)
	client = _client(responses_response=payload)
	service = ImageGenerationService(client, compose_model="compose-model")

	result = await service.compose([ImageRef(scene), TextRef("put the lamp here")], IMAGE_AND_TEXT)

	assert result.image.data == "Y29tcG9zaXRl"
	assert result.text == "Placed it."
	assert result.block_reason is None
	kwargs = client.responses.create.await_args.kwargs
	assert kwargs["model"] == "compose-model"
	assert "tool_choice" not in kwargs
	content = kwargs["input"][0]["content"]
	assert content[0] == {"type": "input_image", "image_url": scene.to_data_url()}
	assert content[1] == {"type": "input_text", "text": "put the lamp here"}


@pytest.mark.asyncio
async def test_compose_image_only_forces_tool():
	client = _client(responses_response=_responses_payload())
	await ImageGenerationService(client).compose([TextRef("x")], IMAGE_ONLY)
	assert client.responses.create.await_args.kwargs["tool_choice"] == {"type": "image_generation"}


def test_parse_refusal_and_block_reason():
	payload = _responses_payload(
		{"type": "message", "content": [{"type": "refusal", "refusal": "I can't help with that."}]},
		incomplete_reason="content_filter",
	)
	result = parse_compose_response(payload)
	assert result.image is None
	assert result.text == "I can't help with that."
	assert result.block_reason == "content_filter"


def test_max_tokens_is_not_a_block_reason():
	assert extract_block_reason(_responses_payload(incomplete_reason="max_output_tokens")) is None


def test_unsupported_aspect_ratio():
	with pytest.raises(ValueError):
		size_for_aspect_ratio("2:1")
