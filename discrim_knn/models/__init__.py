"""
Model utilities package.

This package contains model specifications, workflows, metrics, grid search
and experiment runners. Typical entrypoints are:

- discrim_knn.models.train.main()          : run experiments and save artifacts
- discrim_knn.models.predict.predict_one() : load a saved workflow and predict
"""
