"""Generic {json:api} client: connections, resources, collections, queries, errors, multipart bodies and an in-memory mock."""