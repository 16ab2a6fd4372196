"""GraphQL documents for the Projects (V2) operations used during setup and cloning."""

from __future__ import annotations

USER_PROJECTS_QUERY = """
query($login: String!, $query: String!) {
  user(login: $login) {
    projectsV2(first: 1, query: $query) {
      nodes {
        id
        title
        public
        repositories(first: 1) {
          nodes {
            id
          }
        }
      }
    }
  }
}
"""

LINK_PROJECT_TO_REPOSITORY_MUTATION = """
mutation($projectId: ID!, $repositoryId: ID!) {
  linkProjectV2ToRepository(input: {projectId: $projectId, repositoryId: $repositoryId}) {
    repository {
      id
    }
  }
}
"""

MAKE_PROJECT_PUBLIC_MUTATION = """
mutation($projectId: ID!) {
  updateProjectV2(input: {projectId: $projectId, public: true}) {
    projectV2 {
      id
      public
    }
  }
}
"""

ADD_ITEM_TO_PROJECT_MUTATION = """
mutation($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
    item {
      id
    }
  }
}
"""
