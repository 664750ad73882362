"""Unit tests for test classpath rewriting."""

from __future__ import annotations

from pathlib import Path

from cobertura_graph.host.java import apply_java_conventions, main_classes_dir, main_resources_dir
from cobertura_graph.host.model import Project
from cobertura_graph.plugin.classpath import fix_test_classpath, instrumented_classes_dir


def _java_project(tmp_path: Path) -> Project:
    project = Project("app", tmp_path)
    apply_java_conventions(project)
    return project


def test_existing_classes_directory_is_replaced(tmp_path: Path) -> None:
    project = _java_project(tmp_path)
    main_classes_dir(project).mkdir(parents=True)
    test = project.tasks.get("test")

    fix_test_classpath(test)

    assert test.classpath == [instrumented_classes_dir(project), main_resources_dir(project)]


def test_missing_classes_directory_stays_behind_instrumented_dir(tmp_path: Path) -> None:
    project = _java_project(tmp_path)
    test = project.tasks.get("test")

    fix_test_classpath(test)

    assert test.classpath == [
        instrumented_classes_dir(project),
        main_classes_dir(project),
        main_resources_dir(project),
    ]


def test_regular_file_at_classes_path_is_left_untouched(tmp_path: Path) -> None:
    project = _java_project(tmp_path)
    classes_path = main_classes_dir(project)
    classes_path.parent.mkdir(parents=True)
    classes_path.write_text("not a directory", encoding="utf-8")
    test = project.tasks.get("test")

    fix_test_classpath(test)

    assert classes_path in test.classpath
    assert test.classpath[0] == instrumented_classes_dir(project)


def test_repeated_rewrites_never_double_the_prefix(tmp_path: Path) -> None:
    project = _java_project(tmp_path)
    main_classes_dir(project).mkdir(parents=True)
    test = project.tasks.get("test")
    test.classpath.append(tmp_path / "libs" / "junit.jar")

    fix_test_classpath(test)
    first = list(test.classpath)
    fix_test_classpath(test)

    assert test.classpath == first
    assert test.classpath.count(instrumented_classes_dir(project)) == 1
    assert test.classpath[-1] == tmp_path / "libs" / "junit.jar"
