"""Tests for sdp_experiments.core.modeling.trainers module."""

import numpy as np
import polars as pl
import pytest

from sdp_experiments.core.errors import ConfigurationError
from sdp_experiments.core.experiment.protocols import (
    SetWiseTestAwareTrainingStrategy,
    SetWiseTrainingStrategy,
    TestAwareTrainingStrategy,
    TrainedModel,
    TrainingSlice,
    TrainingStrategy,
)
from sdp_experiments.core.modeling.classifiers import ClassifierType
from sdp_experiments.core.modeling.trainers import (
    SimilarityWeightedVotingTrainer,
    SklearnTrainer,
    TestScaledSklearnTrainer,
    VotingModel,
    VotingTrainer,
)
from sdp_experiments.core.registry import StrategyKind, create_strategy


@pytest.fixture
def slices(two_versions) -> tuple[TrainingSlice, ...]:
    """Fixture providing one training slice per version."""
    return tuple(TrainingSlice(v, 0, 0, v.instances.head(90)) for v in two_versions)


@pytest.fixture
def held_out(two_versions) -> pl.DataFrame:
    """Fixture providing held-out rows of the first version."""
    return two_versions[0].instances.tail(10)


class DescribeSklearnTrainer:
    """Tests for SklearnTrainer."""

    def it_is_named_after_the_classifier(self) -> None:
        """Verify the default model name is the classifier id."""
        trainer = SklearnTrainer("rf")

        assert isinstance(trainer, TrainingStrategy)
        assert trainer.name == "RF"
        assert SklearnTrainer(ClassifierType.NAIVE_BAYES, model_name="Bayes").name == "Bayes"

    def it_fits_a_model_on_the_features(self, two_versions, held_out) -> None:
        """Verify the fitted model ignores the label and predicts every row."""
        model = SklearnTrainer("DT").fit(two_versions[0].instances.head(90), "bug")

        assert isinstance(model, TrainedModel)
        assert model.features == ["wmc", "cbo", "loc"]
        assert model.predict(held_out).shape == (10,)
        assert ((model.predict_score(held_out) >= 0) & (model.predict_score(held_out) <= 1)).all()

    def it_learns_separable_data(self, two_versions, held_out) -> None:
        """Verify a random forest finds the defect signal of the fixtures."""
        model = SklearnTrainer("RF").fit(two_versions[1].instances, "bug")
        y_true = (held_out.get_column("bug").to_numpy() > 0).astype(int)

        assert (model.predict(held_out) == y_true).mean() >= 0.7

    def it_rejects_data_without_features(self) -> None:
        """Verify fitting needs numeric features."""
        with pytest.raises(ValueError, match="no numeric feature"):
            SklearnTrainer("NB").fit(pl.DataFrame({"name": ["a", "b"], "bug": [0, 1]}), "bug")

    def it_is_registered(self) -> None:
        """Verify configurations can create the trainer by name."""
        trainer = create_strategy(StrategyKind.TRAINER, "sklearn", {"classifier": "LR"})

        assert trainer.name == "LR"

    def it_reports_unknown_classifiers(self) -> None:
        """Verify an unknown classifier id is a configuration error."""
        with pytest.raises(ConfigurationError):
            create_strategy(StrategyKind.TRAINER, "sklearn", {"classifier": "GBM"})


class DescribeTestScaledSklearnTrainer:
    """Tests for TestScaledSklearnTrainer."""

    def it_scales_test_rows_with_their_own_statistics(self, two_versions, held_out) -> None:
        """Verify shifting every test row by a constant does not change predictions."""
        trainer = TestScaledSklearnTrainer("LR")
        model = trainer.fit(two_versions[1].instances, held_out, "bug")
        shifted = held_out.with_columns(pl.col("wmc") + 100.0, pl.col("cbo") + 100.0)

        assert isinstance(trainer, TestAwareTrainingStrategy)
        assert trainer.name == "LR-TESTSCALED"
        assert np.allclose(model.predict_score(held_out), model.predict_score(shifted))


class DescribeVotingTrainer:
    """Tests for VotingTrainer."""

    def it_fits_one_member_per_slice(self, slices, held_out) -> None:
        """Verify the vote averages one model per slice."""
        trainer = VotingTrainer("NB")

        model = trainer.fit(slices, "bug")

        assert isinstance(trainer, SetWiseTrainingStrategy)
        assert trainer.name == "NB-VOTE"
        assert np.allclose(model.weights, [0.5, 0.5])
        assert model.predict(held_out).shape == (10,)

    def it_skips_single_class_slices(self, slices, version_factory) -> None:
        """Verify slices holding one class do not vote."""
        clean = version_factory("clean", "clean-1", n_rows=20)
        no_bugs = clean.instances.with_columns(pl.lit(0).alias("bug"))
        clean_slice = TrainingSlice(clean, 0, 0, no_bugs)

        model = VotingTrainer("NB").fit((*slices, clean_slice), "bug")

        assert len(model.weights) == 2

    def it_fails_when_no_slice_holds_both_classes(self, version_factory) -> None:
        """Verify a vote needs at least one usable member."""
        clean = version_factory("clean", "clean-1", n_rows=20)
        no_bugs = clean.instances.with_columns(pl.lit(0).alias("bug"))
        clean_slice = TrainingSlice(clean, 0, 0, no_bugs)

        with pytest.raises(ValueError, match="both classes"):
            VotingTrainer("NB").fit((clean_slice,), "bug")


class DescribeVotingModel:
    """Tests for VotingModel."""

    def it_weights_member_scores(self) -> None:
        """Verify scores are the weighted mean of the member scores."""

        class Fixed:
            def __init__(self, score: float) -> None:
                self.score = score

            def predict_score(self, features: pl.DataFrame) -> np.ndarray:
                return np.full(features.height, self.score)

        model = VotingModel("V", [Fixed(1.0), Fixed(0.0)], weights=[3.0, 1.0])
        features = pl.DataFrame({"wmc": [1.0, 2.0]})

        assert model.predict_score(features).tolist() == [0.75, 0.75]
        assert model.predict(features).tolist() == [1, 1]

    def it_needs_members(self) -> None:
        """Verify an empty vote is rejected."""
        with pytest.raises(ValueError):
            VotingModel("V", [])


class DescribeSimilarityWeightedVotingTrainer:
    """Tests for SimilarityWeightedVotingTrainer."""

    def it_weights_similar_slices_higher(self, version_factory, held_out) -> None:
        """Verify the slice closest to the test rows gets the larger weight."""
        near = version_factory("near", "near-1", n_rows=50, seed=4)
        far = version_factory("far", "far-1", n_rows=50, seed=5)
        far_data = far.instances.with_columns(pl.col("wmc") + 50.0, pl.col("cbo") + 50.0)
        slices = (TrainingSlice(near, 0, 0, near.instances), TrainingSlice(far, 0, 0, far_data))
        trainer = SimilarityWeightedVotingTrainer("NB")

        model = trainer.fit(slices, held_out, "bug")

        assert isinstance(trainer, SetWiseTestAwareTrainingStrategy)
        assert trainer.name == "NB-SIMVOTE"
        assert model.weights[0] > model.weights[1]
        assert model.weights.sum() == pytest.approx(1.0)
