from __future__ import annotations
import dataclasses

import numpy as np
import pytest

from isobar import registry
from isobar.ecmwf import PRESSURE_LEVEL_FAMILIES, PRESSURE_LEVELS, Variable
from isobar.exceptions import UnknownVariable
from isobar.policies import Affine, Eligibility, InterpolationKind
from isobar.registry import REGISTRY, VariableMetadata
from isobar.treatments import from_canonical, to_canonical
from isobar.units import Unit


CLOUD_COVERS = [
    Variable.cloud_cover,
    Variable.cloud_cover_low,
    Variable.cloud_cover_mid,
    Variable.cloud_cover_high,
]


class TestRegistry:
    def test_length(self):
        assert len(REGISTRY) == len(Variable) == 86
        assert list(REGISTRY) == list(Variable)

    def test_entries(self):
        for variable, meta in REGISTRY.items():
            assert isinstance(meta, VariableMetadata)
            assert meta.variable is variable

    def test_contains(self):
        assert Variable.temperature_2m in REGISTRY
        assert "temperature_2m" in REGISTRY
        assert "temperature_3m" not in REGISTRY
        assert "windspeed_10m" not in REGISTRY

    def test_repr(self):
        assert repr(REGISTRY) == "<VariableRegistry: 86 variables>"

    def test_build_registry(self):
        rebuilt = registry.build_registry(validate_units=True)
        assert rebuilt.keys() == REGISTRY.keys()
        assert rebuilt[Variable.pressure_msl] == REGISTRY[Variable.pressure_msl]


class TestPressureLevels:
    @pytest.mark.parametrize("family", PRESSURE_LEVEL_FAMILIES)
    @pytest.mark.parametrize("level", PRESSURE_LEVELS)
    def test_every_level_resolves(self, family, level):
        variable = Variable.at_level(family, level)

        assert variable.family == family
        assert variable.pressure_level == level
        assert isinstance(registry.unit_of(variable), Unit)
        assert registry.scale_factor_of(variable) > 0
        assert registry.interpolation_of(variable).kind in InterpolationKind
        assert registry.level_of(variable) == level

    @pytest.mark.parametrize("family", PRESSURE_LEVEL_FAMILIES)
    def test_family_policies_are_uniform(self, family):
        variables = Variable.of_family(family)
        assert len(variables) == len(PRESSURE_LEVELS)
        assert len({registry.unit_of(v) for v in variables}) == 1
        assert len({registry.scale_factor_of(v) for v in variables}) == 1
        assert len({registry.source_code_of(v) for v in variables}) == 1

    def test_levelless_variables(self):
        assert Variable.temperature_2m.pressure_level is None
        assert Variable.temperature_2m.is_pressure_level is False
        assert Variable.temperature_2m.family == "temperature_2m"


class TestUnits:
    @pytest.mark.parametrize(
        "variable, unit",
        [
            (Variable.temperature_2m, Unit.celsius),
            (Variable.temperature_850hPa, Unit.celsius),
            (Variable.precipitation, Unit.millimetre),
            (Variable.surface_pressure, Unit.hectopascal),
            (Variable.specific_humidity_500hPa, Unit.gram_per_kilogram),
            (Variable.relative_vorticity_50hPa, Unit.per_second),
            (Variable.total_column_integrated_water_vapour, Unit.kilogram_per_square_metre),
            (Variable.cloud_cover_low, Unit.percentage),
        ],
    )
    def test_unit_of(self, variable, unit):
        assert registry.unit_of(variable) is unit
        assert registry.unit_of(variable.value) is unit

    def test_kelvin_to_celsius(self):
        assert registry.affine_of(Variable.temperature_2m) == Affine(1.0, -273.15)
        assert to_canonical(Variable.temperature_2m, 293.15) == pytest.approx(20.0, abs=1e-4)
        assert from_canonical(Variable.temperature_2m, 20.0) == pytest.approx(293.15, abs=1e-4)

    def test_pascal_to_hectopascal(self):
        assert to_canonical(Variable.pressure_msl, 101325.0) == pytest.approx(1013.25, rel=1e-6)

    def test_metre_to_millimetre(self):
        values = to_canonical(Variable.precipitation, np.array([0.0, 0.0012, 0.01]))
        assert values.dtype == np.float32
        np.testing.assert_allclose(values, [0.0, 1.2, 10.0], rtol=1e-6)

    def test_no_conversion(self):
        assert registry.affine_of(Variable.wind_u_component_10m) is None
        assert to_canonical(Variable.wind_u_component_10m, 12.5) == np.float32(12.5)

    def test_native_units(self):
        assert registry.native_units_of(Variable.temperature_2m) == "K"
        assert registry.native_units_of(Variable.precipitation) == "m"
        assert registry.native_units_of(Variable.specific_humidity_1000hPa) == "kg kg-1"


class TestScaleFactors:
    def test_all_positive(self):
        assert all(registry.scale_factor_of(v) > 0 for v in Variable)

    @pytest.mark.parametrize(
        "variable, factor",
        [
            (Variable.precipitation, 10),
            (Variable.soil_temperature_0_to_7cm, 20),
            (Variable.temperature_2m, 20),
            (Variable.geopotential_height_500hPa, 1),
            (Variable.wind_v_component_10m, 10),
            (Variable.relative_humidity_850hPa, 1),
            (Variable.specific_humidity_300hPa, 100),
            (Variable.divergence_of_wind_250hPa, 100),
            (Variable.cloud_cover, 1),
        ],
    )
    def test_literal_values(self, variable, factor):
        assert registry.scale_factor_of(variable) == factor


class TestInterpolationPolicy:
    def test_backwards_sum(self):
        backwards = [v for v in Variable if registry.interpolation_of(v).kind is InterpolationKind.backwards_sum]
        assert backwards == [Variable.precipitation, Variable.runoff]

    def test_bounded_hermite(self):
        bounded = Variable.of_family("relative_humidity") + CLOUD_COVERS
        for variable in bounded:
            policy = registry.interpolation_of(variable)
            assert policy.kind is InterpolationKind.hermite
            assert policy.bounds == (0.0, 100.0)

    def test_unbounded_hermite(self):
        bounded = set(Variable.of_family("relative_humidity") + CLOUD_COVERS)
        for variable in set(Variable) - bounded - {Variable.precipitation, Variable.runoff}:
            policy = registry.interpolation_of(variable)
            assert policy.kind is InterpolationKind.hermite
            assert policy.bounds is None


class TestSourceCodes:
    @pytest.mark.parametrize(
        "variable, code, level",
        [
            (Variable.precipitation, "tp", None),
            (Variable.runoff, "ro", None),
            (Variable.soil_temperature_0_to_7cm, "st", 0),
            (Variable.surface_temperature, "skt", None),
            (Variable.temperature_2m, "2t", 2),
            (Variable.wind_u_component_10m, "10u", 10),
            (Variable.temperature_850hPa, "t", 850),
            (Variable.geopotential_height_50hPa, "gh", 50),
            (Variable.divergence_of_wind_1000hPa, "d", 1000),
        ],
    )
    def test_source_code_and_level(self, variable, code, level):
        assert registry.source_code_of(variable) == code
        assert registry.level_of(variable) == level

    @pytest.mark.parametrize("variable", CLOUD_COVERS)
    def test_cloud_cover_not_in_source(self, variable):
        assert registry.source_code_of(variable) is None
        assert registry.level_of(variable) is None


class TestEligibility:
    def test_download_and_store(self):
        expected = {
            Variable.precipitation,
            Variable.runoff,
            Variable.soil_temperature_0_to_7cm,
            Variable.surface_temperature,
            Variable.relative_humidity_1000hPa,
            Variable.surface_pressure,
            Variable.pressure_msl,
            Variable.wind_u_component_10m,
            Variable.wind_v_component_10m,
            Variable.temperature_2m,
            Variable.cloud_cover,
            Variable.temperature_500hPa,
            Variable.temperature_850hPa,
            Variable.geopotential_height_500hPa,
            Variable.geopotential_height_850hPa,
        }
        assert set(registry.ensemble_variables(Eligibility.download_and_store)) == expected

    def test_download_only(self):
        expected = [v for v in Variable.of_family("relative_humidity") if v is not Variable.relative_humidity_1000hPa]
        assert registry.ensemble_variables(Eligibility.download_only) == expected

    def test_single_classification(self):
        stored = set(registry.ensemble_variables(Eligibility.download_and_store))
        downloaded = set(registry.ensemble_variables(Eligibility.download_only))
        assert not stored & downloaded
        assert set(registry.ensemble_variables()) == stored | downloaded

    def test_excluded(self):
        assert registry.ensemble_eligibility(Variable.specific_humidity_850hPa) is None
        assert registry.ensemble_eligibility(Variable.cloud_cover_low) is None

    def test_previous_forecast(self):
        assert set(registry.previous_forecast_variables()) == {
            Variable.temperature_2m,
            Variable.relative_humidity_1000hPa,
            Variable.precipitation,
            Variable.pressure_msl,
            Variable.cloud_cover,
            Variable.wind_u_component_10m,
            Variable.wind_v_component_10m,
        }
        assert registry.requires_previous_forecast_blend(Variable.runoff) is False

    def test_elevation_correctable(self):
        assert registry.elevation_correctable_variables() == [
            Variable.soil_temperature_0_to_7cm,
            Variable.surface_temperature,
            Variable.temperature_2m,
        ]
        assert registry.is_elevation_correctable(Variable.temperature_850hPa) is False


class TestLookup:
    def test_parse_variable(self):
        assert registry.parse_variable("temperature_2m") is Variable.temperature_2m
        assert registry.parse_variable(Variable.runoff) is Variable.runoff

    @pytest.mark.parametrize("name", ["temperature_3m", "", "TEMPERATURE_2M"])
    def test_unknown_variable(self, name):
        with pytest.raises(UnknownVariable) as excinfo:
            registry.unit_of(name)
        assert excinfo.value.name == name

    def test_unknown_variable_is_value_error(self):
        with pytest.raises(ValueError):
            REGISTRY["geopotential_height_600hPa"]

    @pytest.mark.parametrize("name", ["windspeed_10m", "cloudcover", "dew_point_2m"])
    def test_derived_name_rejected(self, name):
        with pytest.raises(UnknownVariable, match="derived variable"):
            registry.scale_factor_of(name)

    def test_attrs(self):
        attrs = REGISTRY[Variable.temperature_2m].attrs
        assert attrs["standard_name"] == "air_temperature"
        assert REGISTRY[Variable.precipitation].attrs["cell_methods"] == "time: sum"


class TestImmutability:
    def test_metadata_frozen(self):
        meta = REGISTRY[Variable.temperature_2m]
        with pytest.raises(dataclasses.FrozenInstanceError):
            meta.scale_factor = 5

    def test_attrs_read_only(self):
        with pytest.raises(TypeError):
            REGISTRY[Variable.temperature_2m].attrs["units"] = "K"

    def test_registry_read_only(self):
        with pytest.raises(TypeError):
            REGISTRY[Variable.temperature_2m] = None
