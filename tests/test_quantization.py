from __future__ import annotations
import logging

import numpy as np
import pytest

from isobar.ecmwf import Variable
from isobar.registry import REGISTRY
from isobar.treatments import (
    convert_to_canonical,
    decode,
    dequantize,
    encode,
    fill_value,
    from_canonical,
    pack_dataset,
    quantize,
    storage_attrs,
    to_canonical,
    unpack_dataset,
)
from isobar.units import Unit


# Realistic canonical ranges
CANONICAL_RANGES = {
    Unit.celsius: (-80.0, 50.0),
    Unit.gram_per_kilogram: (0.0, 25.0),
    Unit.hectopascal: (500.0, 1100.0),
    Unit.kilogram_per_square_metre: (0.0, 80.0),
    Unit.metre: (-500.0, 25000.0),
    Unit.metre_per_second: (-80.0, 80.0),
    Unit.millimetre: (0.0, 300.0),
    Unit.percentage: (0.0, 100.0),
    Unit.per_second: (-1e-3, 1e-3),
}


class TestFillValue:
    def test_fill_value(self):
        assert fill_value("int16") == -32768
        assert fill_value("int32") == -2147483648
        assert fill_value() == fill_value("int16")

    def test_invalid_dtype(self):
        with pytest.raises(ValueError, match="Storage type"):
            fill_value("int8")
        with pytest.raises(ValueError):
            encode(Variable.temperature_2m, 20.0, dtype="float32")


class TestQuantize:
    def test_temperature(self):
        stored = quantize(Variable.temperature_2m, 293.15)
        assert stored.dtype == np.int16
        assert stored == 400

        assert dequantize(Variable.temperature_2m, stored, native=False) == pytest.approx(20.0)
        assert dequantize(Variable.temperature_2m, stored) == pytest.approx(293.15, abs=1e-4)

    def test_precipitation(self):
        stored = quantize(Variable.precipitation, np.array([0.0, 0.00123, 0.0456]))
        np.testing.assert_array_equal(stored, [0, 12, 456])

    @pytest.mark.parametrize(
        "variable, low, high",
        [
            (Variable.temperature_2m, -60.0, 50.0),
            (Variable.surface_pressure, 500.0, 1100.0),
            (Variable.geopotential_height_50hPa, 19000.0, 21500.0),
            (Variable.specific_humidity_850hPa, 0.0, 25.0),
            (Variable.relative_humidity_700hPa, 0.0, 100.0),
            (Variable.wind_u_component_10m, -60.0, 60.0),
            (Variable.precipitation, 0.0, 250.0),
        ],
    )
    def test_round_trip(self, variable, low, high):
        rng = np.random.default_rng(7)
        values = rng.uniform(low, high, 500).astype(np.float32)
        scale = REGISTRY.scale_factor_of(variable)

        restored = decode(variable, encode(variable, values))
        tolerance = 0.5 / scale + np.abs(values) * 1e-6
        assert np.all(np.abs(restored - values) <= tolerance)

    def test_round_trip_native(self):
        raw = np.array([250.0, 273.15, 301.37], dtype=np.float32)
        restored = dequantize(Variable.temperature_850hPa, quantize(Variable.temperature_850hPa, raw))
        np.testing.assert_allclose(restored, raw, atol=0.5 / 20 + 1e-4)

    def test_deterministic(self):
        values = np.linspace(-40, 40, 1001, dtype=np.float32)
        first = encode(Variable.temperature_2m, values)
        second = encode(Variable.temperature_2m, values.copy())
        np.testing.assert_array_equal(first, second)


class TestAllVariables:
    def test_ranges_cover_units(self):
        assert {REGISTRY.unit_of(v) for v in Variable} <= set(CANONICAL_RANGES)

    @pytest.mark.parametrize("dtype", ["int16", "int32"])
    def test_round_trip(self, dtype):
        rng = np.random.default_rng(19)
        for variable in Variable:
            low, high = CANONICAL_RANGES[REGISTRY.unit_of(variable)]
            scale = REGISTRY.scale_factor_of(variable)
            raw = from_canonical(variable, rng.uniform(low, high, 200).astype(np.float32))
            stored = quantize(variable, raw, dtype=dtype)
            assert stored.dtype == np.dtype(dtype)
            assert not np.any(stored == fill_value(dtype)), variable

            canonical = to_canonical(variable, raw)
            restored = dequantize(variable, stored, native=False)
            tolerance = 0.5 / scale + np.abs(canonical) * 1e-6
            assert np.all(np.abs(restored - canonical) <= tolerance), variable

            affine = REGISTRY.affine_of(variable)
            multiply = 1.0 if affine is None else abs(affine.multiply)
            restored = dequantize(variable, stored)
            tolerance = 0.5 / scale / multiply + np.abs(raw) * 1e-5 + 1e-6
            assert np.all(np.abs(restored - raw) <= tolerance), variable


class TestMissingValues:
    def test_non_finite_to_fill(self):
        stored = encode(Variable.temperature_2m, np.array([np.nan, np.inf, -np.inf, 1.0]))
        np.testing.assert_array_equal(stored, [-32768, -32768, -32768, 20])

    def test_fill_to_nan(self):
        decoded = decode(Variable.temperature_2m, np.array([-32768, 20], dtype=np.int16))
        assert np.isnan(decoded[0])
        assert decoded[1] == pytest.approx(1.0)

    def test_int32(self):
        stored = encode(Variable.temperature_2m, np.array([np.nan, 1.0]), dtype="int32")
        assert stored.dtype == np.int32
        assert stored[0] == fill_value("int32")
        assert np.isnan(decode(Variable.temperature_2m, stored)[0])


class TestSaturation:
    def test_saturates(self, caplog):
        with caplog.at_level(logging.WARNING, logger="isobar.treatments.quantization"):
            stored = encode(Variable.geopotential_height_50hPa, np.array([40000.0, -40000.0, 100.0]))
        np.testing.assert_array_equal(stored, [32767, -32767, 100])
        assert "2 value(s) of `geopotential_height_50hPa` exceed the range of int16" in caplog.text

    def test_int32_range(self):
        stored = encode(Variable.geopotential_height_50hPa, np.array([40000.0]), dtype="int32")
        assert stored[0] == 40000

    def test_saturation_is_not_missing(self):
        stored = encode(Variable.pressure_msl, np.array([1e9]))
        assert stored[0] != fill_value("int16")

    def test_float32_overflow(self, caplog):
        values = np.array([3e38, -3e38, 1e300], dtype=np.float64)
        with caplog.at_level(logging.WARNING, logger="isobar.treatments.quantization"):
            stored = encode(Variable.pressure_msl, values)
        np.testing.assert_array_equal(stored, [32767, -32767, 32767])
        assert "3 value(s) of `pressure_msl`" in caplog.text

        stored = encode(Variable.pressure_msl, np.array([3e38], dtype=np.float32), dtype="int32")
        assert stored[0] == np.iinfo(np.int32).max


class TestStorageAttrs:
    def test_temperature(self):
        attrs = storage_attrs(Variable.temperature_2m)
        assert attrs["units"] == "degC"
        assert attrs["scale_factor"] == pytest.approx(0.05)
        assert attrs["isobar_scale_factor"] == 20
        assert attrs["_FillValue"] == -32768
        assert attrs["standard_name"] == "air_temperature"
        assert attrs["long_name"] == "2 metre temperature"

    def test_int32(self):
        assert storage_attrs("precipitation", dtype="int32")["_FillValue"] == -2147483648


class TestDatasets:
    def test_convert_to_canonical(self, forecast_dataset):
        ds = forecast_dataset()
        out = convert_to_canonical(ds)

        assert out.temperature_2m.attrs["units"] == "degC"
        np.testing.assert_allclose(out.temperature_2m, ds.temperature_2m - 273.15, atol=1e-4)
        assert out.precipitation.attrs["units"] == "mm"
        np.testing.assert_allclose(out.precipitation, ds.precipitation * 1000, rtol=1e-6)
        assert out.surface_pressure.attrs["units"] == "hPa"
        assert out.relative_humidity_1000hPa.attrs["units"] == "%"
        assert "Converted variable `temperature_2m`" in out.attrs["history"]

        # Not a registry variable
        assert out.orography.identical(ds.orography)

    def test_convert_unexpected_units(self, forecast_dataset, caplog):
        ds = forecast_dataset()
        ds["temperature_2m"] = ds.temperature_2m.copy(data=np.full(ds.temperature_2m.shape, 68.0, dtype=np.float32))
        ds["temperature_2m"].attrs["units"] = "degF"

        with caplog.at_level(logging.WARNING, logger="isobar.treatments.conversion"):
            out = convert_to_canonical(ds)
        np.testing.assert_allclose(out.temperature_2m, 20.0, atol=1e-4)
        assert out.temperature_2m.attrs["units"] == "degC"
        assert "unexpected units" in caplog.text

    def test_pack_and_unpack(self, forecast_dataset):
        canonical = convert_to_canonical(forecast_dataset())
        packed = pack_dataset(canonical)

        assert packed.temperature_2m.dtype == np.int16
        assert packed.temperature_2m.attrs["isobar_scale_factor"] == 20
        assert packed.temperature_2m.attrs["standard_name"] == "air_temperature"
        assert packed.orography.dtype == canonical.orography.dtype
        assert "Quantized variable `precipitation` to int16" in packed.attrs["history"]

        unpacked = unpack_dataset(packed)
        for name in ["temperature_2m", "precipitation", "relative_humidity_1000hPa", "surface_pressure"]:
            assert unpacked[name].dtype == np.float32
            assert "scale_factor" not in unpacked[name].attrs
            assert unpacked[name].attrs["units"] == REGISTRY[name].unit.value
            np.testing.assert_allclose(
                unpacked[name], canonical[name], atol=0.5 / REGISTRY.scale_factor_of(name) + 1e-3
            )

    def test_unpack_native(self, forecast_dataset):
        ds = forecast_dataset()
        unpacked = unpack_dataset(pack_dataset(convert_to_canonical(ds)), native=True)
        assert unpacked.temperature_2m.attrs["units"] == "K"
        np.testing.assert_allclose(unpacked.temperature_2m, ds.temperature_2m, atol=0.025 + 1e-3)
        assert "Decoded variable `temperature_2m` to `K`" in unpacked.attrs["history"]

    def test_unpack_inverts_pack(self, forecast_dataset):
        canonical = convert_to_canonical(forecast_dataset())
        packed = pack_dataset(canonical)

        # Datasets are packed from canonical values, single arrays from native values
        unpacked = unpack_dataset(packed)
        assert unpacked.temperature_2m.attrs["units"] == "degC"
        np.testing.assert_array_equal(
            unpacked.temperature_2m, dequantize(Variable.temperature_2m, packed.temperature_2m.values, native=False)
        )
        np.testing.assert_array_equal(
            unpack_dataset(packed, native=True).temperature_2m,
            dequantize(Variable.temperature_2m, packed.temperature_2m.values),
        )

    def test_pack_requires_canonical_units(self, forecast_dataset):
        with pytest.raises(ValueError, match="canonical units"):
            pack_dataset(forecast_dataset())

    def test_unpack_scale_factor_mismatch(self, forecast_dataset):
        packed = pack_dataset(convert_to_canonical(forecast_dataset()))
        packed.temperature_2m.attrs["isobar_scale_factor"] = 10
        with pytest.raises(ValueError, match="scale factor"):
            unpack_dataset(packed)
