import sys

from nvidia_exporter.cli import main

sys.exit(main())
