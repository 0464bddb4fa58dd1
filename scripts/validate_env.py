import os
import sys
import re
import argparse
import shutil
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / '.env')

errors = []
warnings = []

parser = argparse.ArgumentParser(description='Validate StudyGen service environment')
parser.add_argument('--strict', '-s', action='store_true', help='Convert warnings to failures')
parser.add_argument('--offline', action='store_true', help='Skip network connectivity checks')
args = parser.parse_args()
STRICT = args.strict

required = {
    'server': ['ENVIRONMENT', 'HOST', 'PORT'],
    'generation': ['GENERATION_MODEL'],
}

for cat, keys in required.items():
    for k in keys:
        if not os.getenv(k):
            errors.append(f"{cat}: Missing {k}")

api_key = os.getenv('GENERATION_API_KEY') or os.getenv('GROQ_API_KEY') or os.getenv('OPENAI_API_KEY')
if not api_key:
    errors.append('generation: Missing GENERATION_API_KEY (or GROQ_API_KEY / OPENAI_API_KEY)')
elif api_key.strip()[:1] in ('"', "'"):
    warnings.append('generation: API key is wrapped in quotes; remove them from .env')

try:
    port = int(os.getenv('PORT', '0'))
    if port < 1 or port > 65535:
        errors.append('PORT must be integer between 1 and 65535')
except ValueError:
    errors.append('PORT must be an integer')


def check_int(name, default, low, high):
    try:
        val = int(os.getenv(name, str(default)))
        if val < low or val > high:
            errors.append(f'{name} must be between {low} and {high}')
    except ValueError:
        errors.append(f'{name} must be an integer')


def check_float(name, default, low, high):
    try:
        val = float(os.getenv(name, str(default)))
        if val < low or val > high:
            errors.append(f'{name} must be between {low} and {high}')
    except ValueError:
        errors.append(f'{name} must be a float')


check_int('GENERATION_WORKERS', 4, 1, 64)
check_int('GENERATION_MAX_ITEMS', 50, 1, 200)
check_int('AUTO_FLASHCARDS_COUNT', 6, 1, 50)
check_int('FLASHCARD_MAX_TOKENS', 1200, 100, 32000)
check_int('QUIZ_MAX_TOKENS', 4000, 100, 32000)
check_int('FLASHCARD_MAX_CONTENT_CHARS', 10000, 100, 200000)
check_int('QUIZ_MAX_CONTENT_CHARS', 15000, 100, 200000)
check_float('FLASHCARD_TEMPERATURE', 0.4, 0.0, 2.0)
check_float('QUIZ_TEMPERATURE', 0.7, 0.0, 2.0)
check_float('GENERATION_TIMEOUT', 60, 1, 600)

region = os.getenv('AWS_REGION', '')
if region and not re.match(r'^[a-z]{2}-[a-z]+-\d$', region):
    warnings.append('AWS_REGION may not match common region pattern; verify value')

uploads = Path(os.getenv('UPLOADS_DIR', 'uploads'))
if not uploads.exists():
    warnings.append(f'UPLOADS_DIR does not exist: {uploads}')

tesseract_cmd = os.getenv('TESSERACT_CMD') or shutil.which('tesseract')
if not tesseract_cmd:
    warnings.append('tesseract binary not found; image documents will fail extraction')
else:
    print(f'Tesseract: {tesseract_cmd}')

if not args.offline:
    bucket = os.getenv('AWS_S3_BUCKET')
    if bucket:
        import boto3
        from botocore.exceptions import BotoCoreError, ClientError
        s3 = boto3.client('s3',
                          region_name=os.getenv('AWS_REGION'),
                          aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                          aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'))
        try:
            s3.head_bucket(Bucket=bucket)
            print('S3: bucket accessible')
        except (BotoCoreError, ClientError) as e:
            errors.append(f'S3 access failed: {e}')

    if api_key:
        import openai
        from openai import OpenAI
        client = OpenAI(api_key=api_key.strip().strip('"\''), base_url=os.getenv('GENERATION_API_BASE', 'https://api.groq.com/openai/v1'), max_retries=0, timeout=10)
        try:
            client.models.list()
            print('Generation API: reachable')
        except openai.OpenAIError as e:
            warnings.append(f'Generation API check failed: {e}')

    if os.getenv('REDIS_URL') or os.getenv('REDIS_HOST'):
        import redis
        if os.getenv('REDIS_URL'):
            r = redis.from_url(os.getenv('REDIS_URL'))
        else:
            r = redis.Redis(host=os.getenv('REDIS_HOST'), port=int(os.getenv('REDIS_PORT', '6379')), password=os.getenv('REDIS_PASSWORD') or None)
        try:
            if r.ping():
                print('Redis: OK')
        except redis.RedisError as e:
            warnings.append(f'Redis check failed: {e}; the in-memory store will be used')

log_dir = Path(os.getenv('LOG_FILE_PATH', 'logs'))
try:
    log_dir.mkdir(parents=True, exist_ok=True)
    if not os.access(log_dir, os.W_OK):
        errors.append(f'Log path not writable: {log_dir}')
except OSError as e:
    errors.append(f'Failed to verify/create log dir: {e}')

if errors:
    print('\nENV validation failed:')
    for e in errors:
        print(' -', e)
    sys.exit(1)

if warnings:
    print('\nWarnings:')
    for w in warnings:
        print(' -', w)
    if STRICT:
        print('\nStrict mode enabled: treating warnings as errors')
        sys.exit(1)

print('\nAll critical validations passed')
sys.exit(0)
