# SitemapSniffer — IO helpers (directories)
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import os
import threading


_dir_lock = threading.Lock()


def ensure_dirs(*paths: str) -> None:
	with _dir_lock:
		for p in paths:
			if p:
				os.makedirs(p, exist_ok=True)
