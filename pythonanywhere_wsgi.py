import sys
import os

# Add your project directory to the sys.path
project_home = '/home/yourusername/drafting-workspace'
if project_home not in sys.path:
    sys.path.insert(0, project_home)

# Set environment variable for Flask
os.environ['FLASK_ENV'] = 'production'

# Load .env before the app reads its configuration
from dotenv import load_dotenv
load_dotenv(os.path.join(project_home, '.env'))

# Import your Flask app
from app import app as application
