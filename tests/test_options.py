"""Tests for option merging, validation and per-converter resolution."""

from __future__ import annotations

import pytest

from fakes import SuccessGuaranteedConverter
from webp_stack.exceptions import ConfigurationError, InvalidOptionValueError
from webp_stack.options import (
    GENERAL_DEFAULTS,
    SKIP_INPUT_CHECK,
    SUPPRESS_SUCCESS_MESSAGE,
    ConverterSpec,
    apply_image_type_options,
    merge_options,
    metadata_parts,
    resolve_converter_options,
    validate_options,
)


class TestConverterSpec:
    def test_from_id(self) -> None:
        spec = ConverterSpec.from_entry("cwebp")
        assert spec == ConverterSpec("cwebp", {})

    def test_converter_options_apply_to_plain_ids(self) -> None:
        spec = ConverterSpec.from_entry("cwebp", {"cwebp": {"method": 3}})
        assert spec.options == {"method": 3}

    def test_inline_options_win_over_converter_options(self) -> None:
        spec = ConverterSpec.from_entry(
            {"converter": "cwebp", "options": {"quality": 50}},
            {"cwebp": {"method": 3}},
        )
        assert spec.options == {"quality": 50}

    def test_mapping_without_options(self) -> None:
        spec = ConverterSpec.from_entry({"converter": "cwebp"}, {"cwebp": {"method": 3}})
        assert spec.options == {"method": 3}

    def test_from_class(self) -> None:
        spec = ConverterSpec.from_entry(SuccessGuaranteedConverter)
        assert spec.id == "success-guaranteed"
        assert spec.converter_class is SuccessGuaranteedConverter

    def test_mapping_without_converter_key(self) -> None:
        with pytest.raises(ConfigurationError):
            ConverterSpec.from_entry({"options": {}})

    def test_invalid_entry(self) -> None:
        with pytest.raises(ConfigurationError):
            ConverterSpec.from_entry(42)


class TestResolveConverterOptions:
    def test_stack_only_keys_are_stripped(self) -> None:
        stack_options = {
            "converters": ["cwebp"],
            "extra-converters": [],
            "converter-options": {},
            "preferred-converters": [],
            "shuffle": True,
            "quality": 70,
        }
        resolved = resolve_converter_options(stack_options, ConverterSpec("cwebp"))

        assert resolved == {"quality": 70, SKIP_INPUT_CHECK: True, SUPPRESS_SUCCESS_MESSAGE: True}

    def test_converter_overrides_win(self) -> None:
        resolved = resolve_converter_options(
            {"quality": 70, "method": 6}, ConverterSpec("cwebp", {"quality": 40})
        )
        assert resolved["quality"] == 40
        assert resolved["method"] == 6

    def test_input_is_not_mutated(self) -> None:
        stack_options = {"quality": 70, "shuffle": False}
        resolve_converter_options(stack_options, ConverterSpec("cwebp", {"quality": 40}))
        assert stack_options == {"quality": 70, "shuffle": False}


class TestImageTypeOptions:
    def test_jpeg_group_applies_to_jpeg(self) -> None:
        options = {"quality": 80, "jpeg": {"quality": 60}, "png": {"lossless": True}}
        assert apply_image_type_options(options, "image/jpeg") == {"quality": 60}

    def test_png_group_applies_to_png(self) -> None:
        options = {"quality": 80, "lossless": False, "png": {"lossless": True}}
        assert apply_image_type_options(options, "image/png") == {"quality": 80, "lossless": True}

    def test_unknown_type(self) -> None:
        assert apply_image_type_options({"quality": 80, "jpeg": {"quality": 60}}, None) == {"quality": 80}


class TestValidateOptions:
    def test_defaults_are_valid(self) -> None:
        validate_options(GENERAL_DEFAULTS)

    @pytest.mark.parametrize("name, value", [
        ("quality", 101),
        ("quality", "high"),
        ("max-quality", -1),
        ("default-quality", "75"),
        ("near-lossless", 200),
        ("alpha-quality", True),
        ("method", 7),
        ("lossless", "yes"),
        ("auto-filter", 1),
        ("preset", "portrait"),
        ("size-in-percentage", 150),
        ("metadata", "exif,gps"),
        ("metadata", None),
    ])
    def test_invalid_values(self, name: str, value) -> None:
        with pytest.raises(InvalidOptionValueError) as exc_info:
            validate_options({**GENERAL_DEFAULTS, name: value})
        assert exc_info.value.option == name

    @pytest.mark.parametrize("name, value", [
        ("quality", 0),
        ("quality", "auto"),
        ("lossless", "auto"),
        ("preset", "photo"),
        ("size-in-percentage", 50),
        ("metadata", "all"),
        ("metadata", "exif, icc"),
    ])
    def test_valid_values(self, name: str, value) -> None:
        validate_options({**GENERAL_DEFAULTS, name: value})

    def test_invalid_option_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            validate_options({**GENERAL_DEFAULTS, "method": -1})


@pytest.mark.parametrize("metadata, expected", [
    ("none", set()),
    ("all", {"exif", "icc", "xmp"}),
    ("exif,icc", {"exif", "icc"}),
])
def test_metadata_parts(metadata: str, expected: set[str]) -> None:
    assert metadata_parts({"metadata": metadata}) == expected


def test_merge_options_left_to_right() -> None:
    assert merge_options({"a": 1, "b": 1}, None, {"b": 2}) == {"a": 1, "b": 2}
