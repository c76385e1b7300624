"""Tests for sdp_experiments.core.modeling.classifiers module."""

import numpy as np
import polars as pl
import pytest
from sklearn.pipeline import Pipeline

from sdp_experiments.core.modeling.classifiers import (
    ClassifierType,
    SklearnModel,
    build_estimator,
    to_labels,
    to_matrix,
)


class DescribeClassifierType:
    """Tests for ClassifierType."""

    def it_exposes_ids_and_display_names(self) -> None:
        """Verify the members carry their choice values."""
        assert ClassifierType.RANDOM_FOREST.id == "RF"
        assert ClassifierType.RANDOM_FOREST.display_name == "Random Forest"
        assert str(ClassifierType.NAIVE_BAYES) == "NB"

    def it_finds_members_by_id_ignoring_case(self) -> None:
        """Verify ids are matched case-insensitively."""
        assert ClassifierType.from_id("svm") is ClassifierType.SVM

    def it_rejects_unknown_ids(self) -> None:
        """Verify an unknown id raises ValueError."""
        with pytest.raises(ValueError, match="Unknown ClassifierType id"):
            ClassifierType.from_id("GBM")


class DescribeBuildEstimator:
    """Tests for build_estimator."""

    @pytest.mark.parametrize("classifier", list(ClassifierType))
    def it_builds_every_family(self, classifier: ClassifierType) -> None:
        """Verify every family yields an unfitted estimator with predict_proba."""
        estimator = build_estimator(classifier)

        assert hasattr(estimator, "predict_proba")

    @pytest.mark.parametrize(
        "classifier",
        [ClassifierType.LOGISTIC_REGRESSION, ClassifierType.NEURAL_NETWORK, ClassifierType.SVM],
    )
    def it_scales_scale_sensitive_families(self, classifier: ClassifierType) -> None:
        """Verify scale sensitive families are wrapped with a scaler."""
        assert isinstance(build_estimator(classifier), Pipeline)

    def it_passes_parameters_to_the_estimator(self) -> None:
        """Verify extra parameters override the defaults."""
        estimator = build_estimator(ClassifierType.RANDOM_FOREST, random_state=7, n_estimators=5)

        assert estimator.n_estimators == 5
        assert estimator.random_state == 7


class DescribeConversions:
    """Tests for to_matrix and to_labels."""

    def it_fills_missing_columns_and_values_with_zero(self) -> None:
        """Verify absent columns, nulls and NaN become 0."""
        data = pl.DataFrame({"wmc": [1.0, None, float("nan")]})

        X = to_matrix(data, ["wmc", "cbo"])

        assert X.tolist() == [[1.0, 0.0], [0.0, 0.0], [0.0, 0.0]]

    def it_binarizes_counts(self) -> None:
        """Verify any positive count is defective."""
        assert to_labels(pl.DataFrame({"bug": [0, 3, 1, None]}), "bug").tolist() == [0, 1, 1, 0]


class DescribeSklearnModel:
    """Tests for SklearnModel."""

    def it_predicts_with_its_own_feature_columns(self) -> None:
        """Verify predictions select the fitted features from any frame."""
        X = np.array([[0.0], [0.1], [5.0], [5.1]])
        y = np.array([0, 0, 1, 1])
        estimator = build_estimator(ClassifierType.DECISION_TREE)
        model = SklearnModel.fit("DT", estimator, ["wmc"], X, y)
        test = pl.DataFrame({"other": [9, 9], "wmc": [0.05, 5.05]})

        assert model.predict(test).tolist() == [0, 1]
        assert model.predict_score(test).tolist() == [0.0, 1.0]

    def it_fits_a_clone(self) -> None:
        """Verify the configured estimator stays unfitted."""
        estimator = build_estimator(ClassifierType.NAIVE_BAYES)

        SklearnModel.fit("NB", estimator, ["wmc"], np.array([[0.0], [1.0]]), np.array([0, 1]))

        assert not hasattr(estimator, "classes_")

    def it_scores_single_class_models(self) -> None:
        """Verify a model fitted on one class still yields defect scores."""
        estimator = build_estimator(ClassifierType.DECISION_TREE)
        X = np.array([[0.0], [1.0]])
        model = SklearnModel.fit("DT", estimator, ["wmc"], X, np.array([0, 0]))

        assert model.predict_score(pl.DataFrame({"wmc": [0.5]})).tolist() == [0.0]
