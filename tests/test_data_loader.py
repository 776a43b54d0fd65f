# tests/test_data_loader.py

import logging

import pandas as pd
import pytest

from zonal_cem.core.cem import CapacityExpansionModel
from zonal_cem.core.data_loader import CaseDataLoader
from zonal_cem.core.exceptions import SchemaError
from zonal_cem.scripts.main import main


class TestCaseDataLoader:

    def test_reads_all_tables(self, case_dir):
        case = CaseDataLoader(str(case_dir))
        assert case.catalog.names == ["wind", "ccgt", "hydro"]
        assert case.demand.zones == [1, 2]
        assert case.periods.weights == (4380.0, 4380.0)
        assert case.periods.hours_per_period == 2
        assert case.network.line_names == ["1"]

    def test_segment_costs_scale_with_voll(self, case_dir):
        segments = CaseDataLoader(str(case_dir)).demand.segments
        assert [s.cost_per_mwh for s in segments] == pytest.approx([50000.0, 45000.0])
        assert segments[1].max_fraction == pytest.approx(0.04)

    def test_variability_indexed_by_time(self, case_dir):
        catalog = CaseDataLoader(str(case_dir)).catalog
        assert catalog.availability("wind", 3) == pytest.approx(0.5)

    def test_summary(self, case_dir):
        summary = CaseDataLoader(str(case_dir)).get_case_summary()
        assert summary["n_resources"] == 3
        assert summary["n_lines"] == 1
        assert summary["n_periods"] == 2
        assert summary["peak_load"] == pytest.approx(125.0)
        assert summary["existing_capacity"] == pytest.approx(130.0)

    def test_missing_required_file(self, case_dir):
        (case_dir / "Fuels_data.csv").unlink()
        with pytest.raises(FileNotFoundError, match="Fuels_data.csv"):
            CaseDataLoader(str(case_dir))

    def test_multi_zone_case_needs_network(self, case_dir):
        (case_dir / "Network.csv").unlink()
        case = CaseDataLoader(str(case_dir))
        with pytest.raises(FileNotFoundError, match="Network.csv"):
            case.network

    def test_hydro_excluded_from_model(self, case_dir, caplog):
        case = CaseDataLoader(str(case_dir))
        with caplog.at_level(logging.INFO):
            cem = CapacityExpansionModel(case.catalog, case.demand, case.periods, case.network)
        assert cem.catalog.names == ["wind", "ccgt"]
        assert cem.subsets.UC == ("ccgt",)
        assert "hydro" in caplog.text
        assert "Line losses" in caplog.text

    def test_none_fuel_is_kept_as_a_name(self, case_dir):
        catalog = CaseDataLoader(str(case_dir)).catalog
        assert catalog.fuel_of("wind").name == "None"
        assert "None" in catalog.fuels
        assert "nan" not in catalog.fuels

    def test_bad_fuel_reference(self, case_dir):
        generators = pd.read_csv(case_dir / "Generators_data.csv")
        generators.loc[1, "Fuel"] = "hydrogen"
        generators.to_csv(case_dir / "Generators_data.csv", index=False)
        with pytest.raises(SchemaError, match="hydrogen"):
            CaseDataLoader(str(case_dir)).catalog


class TestCommandLine:

    def test_run_writes_reports(self, case_dir, tmp_path, highs, capsys):
        out = tmp_path / "results"
        code = main([str(case_dir), "--solver", highs, "--output-dir", str(out)])
        assert code == 0
        for name in ("generation", "storage", "transmission", "nse",
                     "costs", "emissions", "dispatch", "flows"):
            assert (out / f"{name}.csv").exists()
        costs = pd.read_csv(out / "costs.csv").set_index("Cost")["Value"]
        assert costs["Total_Costs"] == pytest.approx(costs.drop("Total_Costs").sum())
        assert "CAPACITY EXPANSION RESULTS SUMMARY" in capsys.readouterr().out

    def test_input_error_exit_code(self, case_dir, tmp_path):
        code = main([str(case_dir), "--strict-weights", "--horizon-hours", "100",
                     "--output-dir", str(tmp_path / "out")])
        assert code == 1

    def test_missing_case_exit_code(self, tmp_path):
        assert main([str(tmp_path / "nowhere")]) == 1

    def test_empty_period_column_exit_code(self, case_dir, tmp_path):
        load = pd.read_csv(case_dir / "Load_data.csv")
        load["Timesteps_per_Rep_Period"] = float("nan")
        load.to_csv(case_dir / "Load_data.csv", index=False)
        assert main([str(case_dir), "--output-dir", str(tmp_path / "out")]) == 1
