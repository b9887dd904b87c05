"""Tests for BenchmarkConfig and BenchmarkSession orchestration."""

import itertools
import warnings
from contextlib import contextmanager

import pytest

from steadybench.errors import AlreadyStarted, ConfigError, InvalidInstance
from steadybench.harness.result import MeasurementResult
from steadybench.harness.runner import BenchmarkConfig, BenchmarkSession
from steadybench.instrumentation.stats import mad

from conftest import gaussian


class FakeSpan:
    def __init__(self):
        self.attributes = {}

    def set_attribute(self, key, value):
        self.attributes[key] = value


class FakeTracer:
    def __init__(self):
        self.spans = []

    @contextmanager
    def span(self, name, attributes=None):
        span = FakeSpan()
        span.attributes.update(attributes or {})
        self.spans.append((name, span))
        yield span


class TestBenchmarkConfig:
    def test_defaults(self) -> None:
        config = BenchmarkConfig()
        assert config.target_rel_precision == 0.05
        assert config.target_abs_precision == 0
        assert config.initial_runs == 20
        assert config.max_iterations == 10000
        assert config.outlier_rejection == 2.5
        assert config.measure is mad

    def test_needs_a_precision_target(self) -> None:
        with pytest.raises(ConfigError, match="target_rel_precision or target_abs_precision"):
            BenchmarkConfig(target_rel_precision=0, target_abs_precision=0)

    def test_absolute_target_alone_is_enough(self) -> None:
        config = BenchmarkConfig(target_rel_precision=0, target_abs_precision=0.001)
        assert config.target_abs_precision == 0.001

    def test_few_initial_runs_warn(self) -> None:
        with pytest.warns(UserWarning, match="very small"):
            BenchmarkConfig(initial_runs=5)

    def test_enough_initial_runs_do_not_warn(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            BenchmarkConfig(initial_runs=6)

    @pytest.mark.parametrize(
        "options",
        [
            {"initial_runs": 0},
            {"max_iterations": 0},
            {"outlier_rejection": -1.0},
            {"target_rel_precision": -0.1, "target_abs_precision": 0.1},
            {"variability_measure": "nope"},
        ],
    )
    def test_invalid_options(self, options) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with pytest.raises(ConfigError):
                BenchmarkConfig(**options)

    def test_immutable(self) -> None:
        config = BenchmarkConfig()
        with pytest.raises(AttributeError):
            config.initial_runs = 3  # type: ignore[misc]

    def test_from_env(self) -> None:
        config = BenchmarkConfig.from_env(
            {
                "STEADYBENCH_TARGET_REL_PRECISION": "0.01",
                "STEADYBENCH_INITIAL_RUNS": "12",
                "STEADYBENCH_OUTLIER_REJECTION": "3",
            }
        )
        assert config.target_rel_precision == 0.01
        assert config.initial_runs == 12
        assert config.outlier_rejection == 3.0

    def test_from_env_overrides_win(self, monkeypatch) -> None:
        monkeypatch.setenv("STEADYBENCH_MAX_ITERATIONS", "500")
        monkeypatch.setenv("STEADYBENCH_INITIAL_RUNS", "12")
        config = BenchmarkConfig.from_env(initial_runs=30, verbosity=None)
        assert config.max_iterations == 500
        assert config.initial_runs == 30
        assert config.verbosity == 0

    def test_from_env_bad_value(self) -> None:
        with pytest.raises(ConfigError, match="STEADYBENCH_INITIAL_RUNS"):
            BenchmarkConfig.from_env({"STEADYBENCH_INITIAL_RUNS": "many"})

    def test_to_dict(self) -> None:
        data = BenchmarkConfig(initial_runs=8).to_dict()
        assert data["initial_runs"] == 8
        assert data["variability_measure"] == "mad"


class TestBenchmarkSession:
    @pytest.fixture
    def session(self) -> BenchmarkSession:
        return BenchmarkSession(initial_runs=6, max_iterations=200)

    def test_options_build_config(self, session) -> None:
        assert session.config.initial_runs == 6
        assert session.config.max_iterations == 200

    def test_options_override_config(self) -> None:
        session = BenchmarkSession(BenchmarkConfig(initial_runs=8), initial_runs=10)
        assert session.config.initial_runs == 10

    def test_run_subtracts_overhead(self, session, make_instance) -> None:
        instance = make_instance(itertools.repeat(1.0), itertools.repeat(0.25))
        session.add(instance)
        session.run()

        assert instance.dry_result == MeasurementResult(0.25, 0.0, 30)
        assert instance.result.value == pytest.approx(0.75)
        assert instance.result.uncertainty == 0.0
        assert instance.result.sample_count == 6
        assert len(instance.timings) == 6
        assert len(instance.dry_timings) == 30
        assert instance.precision_reached is True

    def test_dry_pass_runs_first(self, session, make_instance) -> None:
        first = make_instance(itertools.repeat(1.0), name="first")
        second = make_instance(itertools.repeat(2.0), name="second")
        session.add(first, second)
        session.run()

        assert first.calls.index("run") > first.calls.index("dry")
        assert set(first.calls[: first.dry_calls]) == {"dry"}
        assert first.result.value == 1.0
        assert second.result.value == 2.0

    def test_run_twice(self, session, make_instance) -> None:
        session.add(make_instance(itertools.repeat(1.0)))
        session.run()
        with pytest.raises(AlreadyStarted):
            session.run()

    def test_add_after_start(self, session, make_instance) -> None:
        session.run()
        assert session.started
        with pytest.raises(AlreadyStarted):
            session.add(make_instance(itertools.repeat(1.0)))

    def test_add_rejects_non_instances(self, session, make_instance) -> None:
        good = make_instance(itertools.repeat(1.0))
        with pytest.raises(InvalidInstance):
            session.add(good, object())
        assert session.instances == ()

    def test_finalized_results_are_skipped(self, session, make_instance) -> None:
        instance = make_instance(itertools.repeat(1.0))
        instance.dry_result = MeasurementResult(0.01, 0.001, 50)
        session.add(instance)
        session.run()

        assert instance.dry_calls == 0
        assert instance.result.value == pytest.approx(0.99)
        assert instance.result.uncertainty == pytest.approx(0.001)

    def test_finalized_real_result_is_kept(self, session, make_instance) -> None:
        instance = make_instance(itertools.repeat(1.0))
        frozen = MeasurementResult(3.0, 0.1, 20)
        instance.result = frozen
        session.add(instance)
        session.run()

        assert instance.run_calls == 0
        assert instance.result is frozen

    def test_instance_result_set_once(self, make_instance) -> None:
        instance = make_instance(itertools.repeat(1.0))
        instance.result = MeasurementResult(1.0, 0.1, 10)
        with pytest.raises(AlreadyStarted):
            instance.result = MeasurementResult(2.0, 0.1, 10)
        instance.dry_result = MeasurementResult(1.0, 0.1, 10)
        with pytest.raises(AlreadyStarted):
            instance.dry_result = MeasurementResult(2.0, 0.1, 10)

    def test_clone_resets_run_state(self, session, make_instance) -> None:
        instance = make_instance(itertools.repeat(1.0))
        session.add(instance)
        session.run()

        clone = session.clone(initial_runs=7)

        assert not clone.started
        assert clone.config.initial_runs == 7
        assert session.config.initial_runs == 6
        (copy,) = clone.instances
        assert copy is not instance
        assert copy.result is None
        assert copy.dry_result is None
        assert copy.timings == []
        assert instance.result is not None

    def test_max_iterations_flagged(self, make_instance, capsys) -> None:
        session = BenchmarkSession(initial_runs=6, target_rel_precision=1e-6, max_iterations=20)
        instance = make_instance(gaussian(1.0, 0.1), itertools.repeat(0.0))
        session.add(instance)
        session.run()

        assert instance.precision_reached is False
        assert len(instance.timings) == 20
        assert "Precision not reached" in capsys.readouterr().out

    def test_tracer_records_passes(self, make_instance) -> None:
        tracer = FakeTracer()
        session = BenchmarkSession(initial_runs=6, tracer=tracer)
        session.add(make_instance(itertools.repeat(1.0), name="traced"))
        session.run()

        assert [span.attributes["dry"] for _, span in tracer.spans] == [True, False]
        name, real = tracer.spans[1]
        assert name == "steadybench.pass"
        assert real.attributes["instance"] == "traced"
        assert real.attributes["samples"] == 6
        assert real.attributes["precision_reached"] is True

    def test_to_dict(self, session, make_instance) -> None:
        session.add(make_instance(itertools.repeat(1.0), name="x"))
        session.run()
        data = session.to_dict()
        assert data["started"] is True
        assert data["config"]["initial_runs"] == 6
        assert data["instances"][0]["name"] == "x"
        assert data["instances"][0]["result"]["value"] == 1.0
