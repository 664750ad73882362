"""Stable names shared between the host model and the coverage plugin."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Coordination task names; users type the last two on the command line.
INSTRUMENT_TASK_NAME: Final[str] = "instrument"
GENERATE_REPORT_TASK_NAME: Final[str] = "generateCoverageReport"
REPORT_REQUEST_TASK_NAME: Final[str] = "coberturaReport"
RUN_ALL_TASK_NAME: Final[str] = "cobertura"

# Java convention task names.
COMPILE_TASK_NAME: Final[str] = "compileJava"
CLASSES_TASK_NAME: Final[str] = "classes"
TEST_TASK_NAME: Final[str] = "test"

# Configuration and extension names.
COBERTURA_CONFIGURATION: Final[str] = "cobertura"
TEST_COMPILE_CONFIGURATION: Final[str] = "testCompile"
TEST_RUNTIME_CONFIGURATION: Final[str] = "testRuntime"
COBERTURA_EXTENSION: Final[str] = "cobertura"

JAVA_PLUGIN_ID: Final[str] = "java"
COBERTURA_PLUGIN_ID: Final[str] = "cobertura"

# Build-scoped flag guarding the plan-ready listener.
LISTENER_REGISTERED_PROPERTY: Final[str] = "coberturaPluginListenerRegistered"

DATAFILE_SYSTEM_PROPERTY: Final[str] = "net.sourceforge.cobertura.datafile"
TOOL_GROUP_ARTIFACT: Final[str] = "net.sourceforge.cobertura:cobertura"
DEFAULT_TOOL_VERSION: Final[str] = "2.1.1"

# Project-relative layout.
BUILD_DIR: Final[PurePosixPath] = PurePosixPath("build")
MAIN_CLASSES_DIR: Final[PurePosixPath] = PurePosixPath("classes/main")
MAIN_RESOURCES_DIR: Final[PurePosixPath] = PurePosixPath("resources/main")
INSTRUMENTED_CLASSES_DIR: Final[PurePosixPath] = PurePosixPath("instrumented_classes")
DEFAULT_DATAFILE: Final[PurePosixPath] = PurePosixPath("build/cobertura/cobertura.ser")
DEFAULT_REPORT_DIR: Final[PurePosixPath] = PurePosixPath("build/reports/cobertura")
DEFAULT_SOURCE_DIR: Final[PurePosixPath] = PurePosixPath("src/main/java")

__all__ = [
    "BUILD_DIR",
    "CLASSES_TASK_NAME",
    "COBERTURA_CONFIGURATION",
    "COBERTURA_EXTENSION",
    "COBERTURA_PLUGIN_ID",
    "COMPILE_TASK_NAME",
    "DATAFILE_SYSTEM_PROPERTY",
    "DEFAULT_DATAFILE",
    "DEFAULT_REPORT_DIR",
    "DEFAULT_SOURCE_DIR",
    "DEFAULT_TOOL_VERSION",
    "GENERATE_REPORT_TASK_NAME",
    "INSTRUMENTED_CLASSES_DIR",
    "INSTRUMENT_TASK_NAME",
    "JAVA_PLUGIN_ID",
    "LISTENER_REGISTERED_PROPERTY",
    "MAIN_CLASSES_DIR",
    "MAIN_RESOURCES_DIR",
    "REPORT_REQUEST_TASK_NAME",
    "RUN_ALL_TASK_NAME",
    "TEST_COMPILE_CONFIGURATION",
    "TEST_RUNTIME_CONFIGURATION",
    "TEST_TASK_NAME",
    "TOOL_GROUP_ARTIFACT",
]
