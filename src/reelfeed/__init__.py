from dotenv import load_dotenv

# Load .env before anything reads os.environ so the Elasticsearch URL,
# API key and cache tunables in reelfeed.config pick up configured values.
load_dotenv()
