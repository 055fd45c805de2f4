#!/usr/bin/env python3
"""
ARIMA modeling and forecasting of an annual imports series.

Usage
-----
    python forecaster_ARIMA.py --help
    python forecaster_ARIMA.py --data data/imports.csv
    python forecaster_ARIMA.py --data data/imports.csv --p-range 0-2 --q-range 0-2 --horizon 10

Package Structure
-----------------
The code is organized in imports_forecaster_src/ with these modules:
- config_utils.py: Configuration management
- data_utils.py: Data loading and validation
- parsing_utils.py: CLI argument parsing
- transform_utils.py: Box-Cox transform and differencing
- stationarity_utils.py: ADF tests
- forecasting_utils.py: ARIMA grid search, selection and forecasting
- plotting_utils.py: Visualization functions
- report_utils.py: Text summaries
- file_utils.py: File operations
- main.py: Main entry point

Residual tests live in diagnostics/ and YAML settings in config/.
"""

import sys

if __name__ == "__main__":
    # Import and delegate to the modular implementation
    try:
        from imports_forecaster_src.main import main
    except ImportError as e:
        print(f"Error: Cannot import the modules: {e}")
        print("Please ensure the imports_forecaster_src/ directory is present and contains the modular code.")
        sys.exit(1)
    main()
