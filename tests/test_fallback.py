import pytest

from fakes import FakeGenerationService, png_image
from models.design_errors import ServiceError
from models.generation_models import ComposeResponse, CompositeRequest, ImageRef, ResponseKind, TextRef
from services.design.fallback import EMPTY_RESPONSE_TEXT, FallbackCompositor, multimodal_inputs
from services.design.prompts import enhanced_prompt


def test_multimodal_inputs_initial_order():
	scene, first, second = png_image((1, 0, 0)), png_image((2, 0, 0)), png_image((3, 0, 0))
	request = CompositeRequest(prompt="combine", scene_image=scene, item_images=(first, second))
	assert multimodal_inputs(request) == [ImageRef(scene), ImageRef(first), ImageRef(second), TextRef("combine")]


def test_multimodal_inputs_refinement_ignores_scene_and_items():
	base = png_image((4, 0, 0))
	request = CompositeRequest(prompt="brighter", base_image=base, scene_image=png_image(), item_images=(png_image(),))
	assert multimodal_inputs(request) == [ImageRef(base), TextRef("brighter")]


def test_enhanced_prompt_wraps_user_text():
	text = enhanced_prompt("a red sofa")
	assert "a red sofa" in text
	assert text.startswith("Create a professional design visualization.")
	assert "realistic" in text


@pytest.mark.asyncio
async def test_first_stage_image_returns_without_fallback():
	service = FakeGenerationService()
	image = png_image()
	service.compose_results.append(ComposeResponse(image=image, text="done"))

	result = await FallbackCompositor(service).run(CompositeRequest(prompt="p", base_image=png_image()))

	assert result.image == image
	assert len(service.compose_calls) == 1


@pytest.mark.asyncio
async def test_fallback_is_text_only_and_image_only():
	service = FakeGenerationService()
	service.compose_results.extend([ServiceError("declined"), ComposeResponse(image=png_image())])

	result = await FallbackCompositor(service).run(CompositeRequest(prompt="a desk", scene_image=png_image()))

	assert result.image is not None
	inputs, kinds = service.compose_calls[1]
	assert inputs == [TextRef(enhanced_prompt("a desk"))]
	assert kinds == {ResponseKind.IMAGE}


@pytest.mark.asyncio
async def test_block_reason_becomes_service_error():
	service = FakeGenerationService()
	service.compose_results.extend([ComposeResponse(), ComposeResponse(block_reason="content_filter")])

	with pytest.raises(ServiceError) as excinfo:
		await FallbackCompositor(service).run(CompositeRequest(prompt="p", base_image=png_image()))
	assert str(excinfo.value) == "Request was blocked: content_filter"


@pytest.mark.asyncio
async def test_empty_fallback_returns_generic_text():
	service = FakeGenerationService()
	service.compose_results.extend([ComposeResponse(), ComposeResponse()])

	result = await FallbackCompositor(service).run(CompositeRequest(prompt="p", base_image=png_image()))

	assert result.image is None
	assert result.text == EMPTY_RESPONSE_TEXT


@pytest.mark.asyncio
async def test_fallback_error_propagates():
	service = FakeGenerationService()
	service.compose_results.extend([ComposeResponse(text="no"), ServiceError("OpenAI API Error: 500")])

	with pytest.raises(ServiceError):
		await FallbackCompositor(service).run(CompositeRequest(prompt="p", base_image=png_image()))
