"""Root conftest: plugins shared by the whole test suite."""

pytest_plugins = ["pytester", "sqlfixture.pytest_plugin"]
