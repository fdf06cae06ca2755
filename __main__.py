"""Pulumi entry point for the forecast demo infrastructure."""
import logging

import structlog

from forecastlab_infra.__main__ import ForecastLabStack
from forecastlab_infra.config import StackConfig

structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.INFO))
ForecastLabStack(config=StackConfig.load()).run()
