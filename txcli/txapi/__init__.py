"""Operations on organizations, projects, resources, languages, formats, statistics, uploads and downloads."""