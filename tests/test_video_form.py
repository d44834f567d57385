import re

import pytest

from ugcvideo.models.video_schema import VideoFormData
from ugcvideo.services.errors import ValidationError
from ugcvideo.services.video_form import (
    validate_form,
    format_chat_input,
    is_valid_image_url,
    new_session_id,
)


def _form(**overrides):
    data = {
        "duration": "24",
        "product_description": "Hydrating face serum with vitamin C",
        "image_url": "https://shop.test/img/serum.png",
        "character_gender": "female",
    }
    data.update(overrides)
    return data


def test_valid_form_is_cleaned():
    form = validate_form(_form(product_description="  Hydrating face serum  ", character_gender="Female"))
    assert form.product_description == "Hydrating face serum"
    assert form.character_gender == "female"


def test_all_fields_required():
    with pytest.raises(ValidationError) as exc:
        validate_form({"duration": "", "product_description": "", "image_url": "", "character_gender": ""})
    assert set(exc.value.field_errors) == {"duration", "product_description", "image_url", "character_gender"}


@pytest.mark.parametrize("url", [
    "https://shop.test/img/serum.png",
    "http://shop.test/a.JPG",
    "https://shop.test/a.jpeg?w=400",
    "https://shop.test/a.webp",
])
def test_allowed_image_urls(url):
    assert is_valid_image_url(url)


@pytest.mark.parametrize("url", [
    "https://shop.test/img/serum.gif",
    "https://shop.test/img/serum",
    "ftp://shop.test/a.png",
    "shop.test/a.png",
    "",
])
def test_rejected_image_urls(url):
    assert not is_valid_image_url(url)
    with pytest.raises(ValidationError) as exc:
        validate_form(_form(image_url=url))
    assert "image_url" in exc.value.field_errors


def test_short_description_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_form(_form(product_description="serum"))
    assert list(exc.value.field_errors) == ["product_description"]


def test_unknown_choices_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_form(_form(duration="90", character_gender="robot"))
    assert set(exc.value.field_errors) == {"duration", "character_gender"}


def test_accepts_model_instance():
    form = VideoFormData(**_form())
    assert validate_form(form).image_url == form.image_url


def test_numbers_and_nulls_are_coerced():
    assert validate_form(_form(duration=30)).duration == "30"
    model = VideoFormData(duration=15, product_description=None, image_url="https://shop.test/a.png", character_gender="male")
    assert model.duration == "15"
    with pytest.raises(ValidationError) as exc:
        validate_form(model)
    assert list(exc.value.field_errors) == ["product_description"]


def test_chat_input_lines():
    form = validate_form(_form())
    assert format_chat_input(form).split("\n") == [
        "Hydrating face serum with vitamin C",
        "https://shop.test/img/serum.png",
        "female",
    ]


def test_session_ids_differ_back_to_back():
    first, second = new_session_id(), new_session_id()
    assert first != second
    assert re.match(r"^video-\d+-[0-9a-z]{9}$", first)
