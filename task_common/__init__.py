"""
Shared layer for the student task manager Lambda functions.

Every function directory imports from here: task models, the aggregation
and report code, the ownership gate, and the DynamoDB/SES/S3 collaborators.
"""
