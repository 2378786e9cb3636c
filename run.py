"""Launch the portal with Streamlit, honouring PORT and MAX_UPLOAD_MB."""
import os
import subprocess
import sys

DEFAULT_PORT = 8501

try:
    port = int(os.environ.get("PORT", DEFAULT_PORT))
except ValueError:
    print(f"Invalid PORT value: {os.environ['PORT']}, using {DEFAULT_PORT}")
    port = DEFAULT_PORT

cmd = [
    sys.executable, "-m", "streamlit", "run", "app.py",
    f"--server.port={port}",
    "--server.address=0.0.0.0",
    "--server.headless=true",
    f"--server.maxUploadSize={os.environ.get('MAX_UPLOAD_MB', '25')}",
]

print(f"Starting Asset Transfer Portal: {' '.join(cmd)}")
sys.exit(subprocess.run(cmd).returncode)
